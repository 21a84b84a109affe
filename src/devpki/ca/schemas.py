"""
证书签发服务的数据模型定义。
"""

from datetime import datetime
from typing import List

from pydantic import AliasChoices, BaseModel, Field


class CertificateBundle(BaseModel):
    """
    签发结果：PEM 格式的证书与私钥，以及有效期。
    encrypted 仅在私钥由口令保护时为 True，其余情况为 None。
    """
    certificate: str  # PEM 编码的证书
    private_key: str = Field(validation_alias=AliasChoices("private_key", "privateKey"))
    encrypted: bool | None = None
    not_before: datetime = Field(validation_alias=AliasChoices("not_before", "notBefore"))
    not_after: datetime = Field(validation_alias=AliasChoices("not_after", "notAfter"))


class RootCARequest(BaseModel):
    """
    请求创建根 CA 的数据模型。
    """
    valid_until: datetime | None = None
    passphrase: str | None = None


class HostCertRequest(BaseModel):
    """
    请求签发主机证书的数据模型。
    """
    valid_until: datetime
    common_name: str
    valid_domains: List[str]
    root_ca: CertificateBundle
    root_password: str | None = None


class AltNamesRequest(BaseModel):
    """
    请求读取证书 SAN 的数据模型。
    """
    path: str  # 服务端本地的 PEM 证书路径


class AltNamesResponse(BaseModel):
    """
    返回证书 SAN 的数据模型。
    """
    path: str
    alt_names: str
