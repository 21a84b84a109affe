"""
证书签发相关的异常定义。
每个异常都记录失败的前置条件名称（argument），消息中不包含任何密钥材料。
"""


class CertificateError(Exception):
    """证书签发异常基类。"""

    def __init__(self, argument: str, message: str):
        super().__init__(message)
        self.argument = argument


class InvalidArgumentError(CertificateError, ValueError):
    """参数不合法：common_name、valid_domains 或 root_ca 结构有误。"""


class MissingCredentialError(CertificateError, ValueError):
    """CA 私钥已加密，但未提供口令。"""


class DecryptionFailureError(CertificateError, ValueError):
    """口令错误或 CA 私钥无法解密。"""


class NotFoundError(CertificateError, FileNotFoundError):
    """证书文件路径不存在。"""


class SigningFailureError(CertificateError, RuntimeError):
    """签名原语失败，例如 CA 私钥格式损坏。"""
