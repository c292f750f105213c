"""项目内使用的自定义异常定义。"""


class ThumbgenError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ThumbgenError):
    """配置不合法时抛出。"""


class PlanningError(ThumbgenError):
    """无法为某个目标准备输出目录。"""


class ExecutionError(ThumbgenError):
    """转换执行失败的基类。"""


class LaunchFailedError(ExecutionError):
    """外部工具不存在或无法启动。"""


class ToolFailedError(ExecutionError):
    """转换工具报告失败（仅在严格模式或内置后端下产生）。"""


class ToolTimeoutError(ExecutionError):
    """外部工具超过等待时间，已被终止。"""


class StampError(ThumbgenError):
    """无法同步输出文件的修改时间。"""
