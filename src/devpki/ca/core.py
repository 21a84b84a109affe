"""
证书签发服务的核心逻辑实现。
包括创建自签根 CA、使用根 CA 签发主机证书、读取证书 SAN 等。
"""

import os
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    PrivateFormat,
)
from cryptography.x509.oid import NameOID
from loguru import logger

from src.devpki.config import Config, config
from . import names, serial, validity
from .errors import (
    DecryptionFailureError,
    InvalidArgumentError,
    MissingCredentialError,
    NotFoundError,
    SigningFailureError,
)
from .schemas import CertificateBundle

PUBLIC_EXPONENT = 65537
# 未指定到期时间时主机证书的默认有效天数
DEFAULT_HOST_VALIDITY_DAYS = 30

DIGESTS = {
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
}

# SAN 条目的展示前缀
ALT_NAME_PREFIXES = {
    x509.DNSName: "DNS",
    x509.IPAddress: "IP Address",
    x509.RFC822Name: "email",
    x509.UniformResourceIdentifier: "URI",
    x509.DirectoryName: "DirName",
    x509.RegisteredID: "Registered ID",
}


def _generate_key_pair(key_size: int) -> rsa.RSAPrivateKey:
    """生成新的 RSA 密钥对，每张证书各自独立，从不复用。"""
    return rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)


def _digest(name: str) -> hashes.HashAlgorithm:
    return DIGESTS[name]()


def _get_cn_from_name(name: x509.Name) -> str | None:
    try:
        return name.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value
    except IndexError:
        return None


def _private_key_pem(private_key: rsa.RSAPrivateKey, passphrase: str | None = None) -> str:
    encryption = BestAvailableEncryption(passphrase.encode("utf-8")) if passphrase else NoEncryption()
    return private_key.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    ).decode("utf-8")


def _sign(builder: x509.CertificateBuilder, private_key: Any, digest: str, argument: str) -> x509.Certificate:
    try:
        return builder.sign(private_key=private_key, algorithm=_digest(digest))
    except (ValueError, TypeError) as e:
        logger.error(f"证书签名失败: {e}")
        raise SigningFailureError(argument, "证书签名失败") from e


def _to_bundle(cert: x509.Certificate, private_key_pem: str, encrypted: bool = False) -> CertificateBundle:
    return CertificateBundle(
        certificate=cert.public_bytes(Encoding.PEM).decode("utf-8"),
        private_key=private_key_pem,
        encrypted=True if encrypted else None,
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
    )


def create_root_ca(
    valid_until: datetime | None = None,
    passphrase: str | None = None,
    settings: Config | None = None,
) -> CertificateBundle:
    """
    创建自签名根 CA。
    :param valid_until: 期望的到期时间；不在未来时按 settings.ca_validity_policy 回退。
    :param passphrase: 非空时私钥使用该口令加密，并在结果中标记 encrypted。
    :param settings: 签发策略配置，默认使用全局 config。
    :return: 根 CA 的 CertificateBundle。
    """
    settings = settings or config

    ca_key = _generate_key_pair(settings.key_size)
    subject = names.ca_name(settings)

    not_before = validity.cert_not_before(settings.backdate_days)
    policy = (
        validity.FallbackPolicy.CENTURY
        if settings.ca_validity_policy == "long"
        else validity.FallbackPolicy.END_OF_DAY
    )
    not_after = validity.cert_not_after(
        valid_until,
        policy,
        not_before=not_before,
        years=settings.ca_validity_years,
    )
    serial_hex = serial.next_serial()

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(ca_key.public_key())
        .serial_number(serial.serial_to_int(serial_hex))
        .not_valid_before(not_before)
        .not_valid_after(not_after)
    )
    for extension, critical in names.ca_extensions():
        builder = builder.add_extension(extension, critical=critical)

    ca_cert = _sign(builder, ca_key, settings.ca_digest, "settings")

    encrypted = bool(passphrase)
    bundle = _to_bundle(ca_cert, _private_key_pem(ca_key, passphrase), encrypted=encrypted)
    logger.info(
        f"已创建根 CA: CN={settings.ca_common_name}, serial={serial_hex}, "
        f"有效期 {bundle.not_before.isoformat()} ~ {bundle.not_after.isoformat()}, encrypted={encrypted}"
    )
    return bundle


def _unpack_root_ca(root_ca: Any) -> Tuple[str, str, bool]:
    """
    从 CertificateBundle 或映射中取出 (certificate, private_key, encrypted)。
    :raises InvalidArgumentError: 缺少 certificate 或 private_key。
    """
    if isinstance(root_ca, CertificateBundle):
        return root_ca.certificate, root_ca.private_key, bool(root_ca.encrypted)
    if isinstance(root_ca, Mapping):
        certificate = root_ca.get("certificate")
        private_key = root_ca.get("private_key", root_ca.get("privateKey"))
        if isinstance(certificate, str) and isinstance(private_key, str):
            return certificate, private_key, bool(root_ca.get("encrypted"))
    raise InvalidArgumentError(
        "root_ca", '"root_ca" 必须包含 "certificate" 与 "private_key" 字段'
    )


def _root_ca_marked_encrypted(root_ca: Any) -> bool:
    if isinstance(root_ca, CertificateBundle):
        return bool(root_ca.encrypted)
    if isinstance(root_ca, Mapping):
        return bool(root_ca.get("encrypted"))
    return False


def _load_root_ca(certificate_pem: str, private_key_pem: str, encrypted: bool, root_password: str | None):
    """解析根 CA 证书与私钥。仅当 root_ca 标记为 encrypted 时才使用口令。"""
    try:
        ca_cert = x509.load_pem_x509_certificate(certificate_pem.encode("utf-8"))
    except ValueError as e:
        raise InvalidArgumentError("root_ca", "无法解析根 CA 证书") from e

    password = root_password.encode("utf-8") if (encrypted and root_password) else None
    try:
        ca_key = serialization.load_pem_private_key(private_key_pem.encode("utf-8"), password=password)
    except TypeError as e:
        # 私钥实际加密状态与 encrypted 标记不一致
        raise DecryptionFailureError("root_password", "根 CA 私钥的加密状态与 encrypted 标记不一致") from e
    except ValueError as e:
        if password is not None:
            raise DecryptionFailureError("root_password", "根 CA 私钥解密失败，口令错误") from e
        raise SigningFailureError("root_ca", "无法解析根 CA 私钥") from e

    if not isinstance(ca_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise SigningFailureError("root_ca", "不支持的根 CA 私钥类型")
    return ca_cert, ca_key


def create_host_cert(
    valid_until: datetime | None,
    common_name: str,
    valid_domains: Sequence[str],
    root_ca: CertificateBundle | Mapping,
    root_password: str | None = None,
    settings: Config | None = None,
) -> CertificateBundle:
    """
    使用根 CA 签发主机（叶子）证书。
    所有参数校验都在生成密钥之前完成。
    :param valid_until: 期望的到期时间；为 None 时取当前时间加 30 天，不在未来时回退为当日结束。
    :param common_name: 证书主体 CN，去除空白后不能为空。
    :param valid_domains: 域名或 IP 列表，按原顺序写入 SAN。
    :param root_ca: 根 CA 的 CertificateBundle（或包含相同字段的映射）。
    :param root_password: 根 CA 私钥口令，仅当 root_ca 标记为 encrypted 时使用。
    :param settings: 签发策略配置，默认使用全局 config。
    :return: 主机证书的 CertificateBundle，私钥从不加密。
    :raises InvalidArgumentError / MissingCredentialError / DecryptionFailureError / SigningFailureError
    """
    settings = settings or config

    if not isinstance(common_name, str) or not common_name.strip():
        raise InvalidArgumentError("common_name", '"common_name" 必须为非空字符串')
    if (
        isinstance(valid_domains, (str, bytes))
        or not isinstance(valid_domains, Sequence)
        or not all(isinstance(d, str) for d in valid_domains)
    ):
        raise InvalidArgumentError("valid_domains", '"valid_domains" 必须为字符串列表')
    # dNSName 只接受 ASCII（A-label）形式
    if not all(names.is_ip_literal(d) or d.isascii() for d in valid_domains):
        raise InvalidArgumentError("valid_domains", '"valid_domains" 中的域名必须为 ASCII（A-label）形式')
    if _root_ca_marked_encrypted(root_ca) and not root_password:
        raise MissingCredentialError("root_password", "缺少根 CA 私钥口令 (root password)")
    certificate_pem, private_key_pem, encrypted = _unpack_root_ca(root_ca)

    ca_cert, ca_key = _load_root_ca(certificate_pem, private_key_pem, encrypted, root_password)

    host_key = _generate_key_pair(settings.key_size)

    not_before = validity.cert_not_before(settings.backdate_days)
    if valid_until is None:
        valid_until = datetime.now(timezone.utc) + timedelta(days=DEFAULT_HOST_VALIDITY_DAYS)
    not_after = validity.cert_not_after(valid_until, validity.FallbackPolicy.END_OF_DAY)
    if not_after != validity.as_utc(valid_until):
        logger.debug(f"请求的到期时间不在未来，回退为当日结束: {not_after.isoformat()}")
    serial_hex = serial.next_serial()

    builder = (
        x509.CertificateBuilder()
        .subject_name(names.host_name(settings, common_name))
        # 签发者直接复制 CA 证书的主体，保证链路校验逐字节一致
        .issuer_name(ca_cert.subject)
        .public_key(host_key.public_key())
        .serial_number(serial.serial_to_int(serial_hex))
        .not_valid_before(not_before)
        .not_valid_after(not_after)
    )
    for extension, critical in names.host_extensions(ca_cert, valid_domains):
        builder = builder.add_extension(extension, critical=critical)

    host_cert = _sign(builder, ca_key, settings.leaf_digest, "root_ca")

    bundle = _to_bundle(host_cert, _private_key_pem(host_key))
    logger.info(
        f"已签发主机证书: CN={common_name}, issuer={_get_cn_from_name(ca_cert.subject)}, "
        f"serial={serial_hex}, SAN={list(valid_domains)}, "
        f"有效期 {bundle.not_before.isoformat()} ~ {bundle.not_after.isoformat()}"
    )
    return bundle


def format_alt_names(cert: x509.Certificate) -> str:
    """将证书的 SAN 扩展格式化为 "DNS:a, IP Address:b" 形式；无 SAN 时返回空字符串。"""
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return ""
    parts = []
    for general_name in san:
        prefix = ALT_NAME_PREFIXES.get(type(general_name), "othername")
        value = general_name.value
        if isinstance(general_name, x509.DirectoryName):
            value = value.rfc4514_string()
        parts.append(f"{prefix}:{value}")
    return ", ".join(parts)


def get_alt_names(path: str | os.PathLike) -> str:
    """
    读取 PEM 证书文件并返回其 SAN 扩展的展示字符串。
    :raises NotFoundError: 路径不存在。
    :raises InvalidArgumentError: 文件不是有效的 PEM 证书。
    """
    if not os.path.exists(path):
        raise NotFoundError("path", f"路径不存在: {path}")
    with open(path, "rb") as f:
        data = f.read()
    try:
        cert = x509.load_pem_x509_certificate(data)
    except ValueError as e:
        raise InvalidArgumentError("path", f"无法解析证书文件: {path}") from e
    return format_alt_names(cert)
