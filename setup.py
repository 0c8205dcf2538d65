import os
import pathlib
from setuptools import setup, find_packages

# 项目根目录路径
here = pathlib.Path(__file__).parent.resolve()
long_description = (here / "README.md").read_text(encoding="utf-8")

def load_requirements(path_dir=here, comment_char="#"):
    with open(os.path.join(path_dir, "requirements.txt"), "r") as file:
        lines = [line.strip() for line in file.readlines()]
    requirements = []
    for line in lines:
        if comment_char in line:
            line = line[: line.index(comment_char)]
        if line: 
            requirements.append(line)
    return requirements

setup(
    name='simpopt',
    version='1.0.0',
    description='SIMP topology optimization with adjoint-consistent Hessian actions on structured quadrilateral meshes',
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GNU",
    packages=find_packages(),
    install_requires=load_requirements(),
    extras_require={
        'test': ['pytest'],
    },
    python_requires=">=3.10",
)
