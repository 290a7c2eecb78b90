"""项目内使用的自定义异常定义。"""


class VariantPipelineError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(VariantPipelineError):
    """配置不合法（包括指定的文件不存在、无法解析的 glob）时抛出。"""

