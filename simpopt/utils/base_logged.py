import logging
from typing import Optional
from abc import ABC

class BaseLogged(ABC):
    """为分析器、约束、目标函数和优化器提供统一日志输出的基类"""
    
    def __init__(self, 
                 enable_logging: bool = True,
                 logger_name: Optional[str] = None):
        self._enable_logging = enable_logging
        self._logger_name = logger_name or f"{self.__class__.__name__}_{id(self)}"
        self.logger = None
        if enable_logging:
            self._attach_logger()

    def _attach_logger(self) -> None:
        """获取日志器, 首次使用时挂载 StreamHandler"""
        self.logger = logging.getLogger(self._logger_name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)
    
    def enable_logging(self, enable: bool = True) -> None:
        """启用或禁用日志输出"""
        self._enable_logging = enable
        if enable:
            self._attach_logger()
            self._log_info("Logging enabled")
        elif self.logger is not None:
            for handler in self.logger.handlers[:]:
                self.logger.removeHandler(handler)
            self.logger = None
    
    def set_log_level(self, level: int) -> None:
        """设置日志级别"""
        if self.logger:
            self.logger.setLevel(level)
    
    def _log_debug(self, message: str) -> None:
        if self._enable_logging and self.logger:
            self.logger.debug(message)
    
    def _log_info(self, message: str, force_log: bool = False) -> None:
        """输出一般信息, force_log=True 时即使日志关闭也打印"""
        if self._enable_logging and self.logger:
            self.logger.info(message)
        elif force_log:
            print(f"{self._logger_name} - INFO - {message}")
    
    def _log_warning(self, message: str) -> None:
        if self._enable_logging and self.logger:
            self.logger.warning(message)
    
    def _log_error(self, message: str) -> None:
        if self._enable_logging and self.logger:
            self.logger.error(message)
    
    def is_logging_enabled(self) -> bool:
        return self._enable_logging
    
    def get_logger_name(self) -> str:
        return self._logger_name
