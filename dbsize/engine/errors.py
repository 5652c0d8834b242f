# -*- coding: utf-8 -*-
"""
错误分类

- NotFound / Absent 不是异常：目录或段不存在时以 0 / None 作为返回值
- 其余类别均为致命错误，中止整个组合计算，不返回部分结果
"""
from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """错误类别"""
    IO = "io"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    PARSE = "parse"
    OVERFLOW = "overflow"
    CANCELED = "canceled"
    CONFIG = "config"
    INVALID_PARAMETER = "invalid_parameter"


class DbSizeError(Exception):
    """异常基类"""

    category = ErrorCategory.INVALID_PARAMETER

    def __init__(self, message: str, detail: Optional[str] = None, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.hint = hint

    def __str__(self):
        result = self.message
        if self.detail:
            result += f"\nDETAIL:  {self.detail}"
        if self.hint:
            result += f"\nHINT:  {self.hint}"
        return result


class StorageIOError(DbSizeError):
    """除"文件不存在"之外的任何文件访问失败"""

    category = ErrorCategory.IO

    def __init__(self, path: str, cause: OSError, action: str = "stat file"):
        super().__init__(f'could not {action} "{path}": {cause.strerror or cause}')
        self.path = path
        self.cause = cause


class AccessDeniedError(DbSizeError):
    category = ErrorCategory.AUTHORIZATION

    def __init__(self, object_type: str, object_name: str):
        super().__init__(f"permission denied for {object_type} {object_name}")
        self.object_type = object_type
        self.object_name = object_name


class ObjectNotFoundError(DbSizeError):
    category = ErrorCategory.NOT_FOUND

    def __init__(self, object_type: str, object_name: str):
        super().__init__(f'{object_type} "{object_name}" does not exist')
        self.object_type = object_type
        self.object_name = object_name


class SizeParseError(DbSizeError):
    """大小字符串语法错误或单位无法识别"""

    category = ErrorCategory.PARSE

    def __init__(self, text: str, detail: Optional[str] = None, hint: Optional[str] = None):
        super().__init__(f'invalid size: "{text}"', detail, hint)
        self.text = text


class SizeOverflowError(DbSizeError):
    category = ErrorCategory.OVERFLOW

    def __init__(self, message: str = "bigint out of range"):
        super().__init__(message)


class InvalidForkNameError(DbSizeError):
    category = ErrorCategory.INVALID_PARAMETER


class QueryCanceledError(DbSizeError):
    category = ErrorCategory.CANCELED

    def __init__(self, message: str = "canceling statement due to user request"):
        super().__init__(message)


class ConfigError(DbSizeError):
    """配置文件缺失字段或格式非法"""

    category = ErrorCategory.CONFIG
