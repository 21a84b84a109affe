"""
证书 DN 常量、扩展集合与 SAN 编码。
CA 与叶子证书的扩展集合集中在此定义，便于审计签发策略。
"""

import ipaddress
from typing import Iterable, List, Sequence

from cryptography import x509
from cryptography.x509 import ObjectIdentifier
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from src.devpki.config import Config

# Netscape Cert Type 扩展
NS_CERT_TYPE_OID = ObjectIdentifier("2.16.840.1.113730.1.1")
# BIT STRING: sslCA | emailCA | objCA
NS_CERT_TYPE_CA = b"\x03\x02\x00\x07"

# (字段名, 值) 列表中使用的简称
SHORT_NAMES = {
    "C": NameOID.COUNTRY_NAME,
    "ST": NameOID.STATE_OR_PROVINCE_NAME,
    "L": NameOID.LOCALITY_NAME,
    "O": NameOID.ORGANIZATION_NAME,
    "OU": NameOID.ORGANIZATIONAL_UNIT_NAME,
    "CN": NameOID.COMMON_NAME,
}


def build_name(attributes: Sequence[tuple]) -> x509.Name:
    """按顺序将 (简称, 值) 对转换为 x509.Name。"""
    return x509.Name(
        [x509.NameAttribute(SHORT_NAMES[short], value) for short, value in attributes]
    )


def _locality_attributes(settings: Config) -> List[tuple]:
    return [
        ("C", settings.country_name),
        ("ST", settings.state_name),
        ("L", settings.locality_name),
    ]


def ca_name(settings: Config) -> x509.Name:
    """CA 的主体（同时也是签发者）DN。"""
    attributes = _locality_attributes(settings)
    if settings.ca_dn_variant == "full":
        attributes += [
            ("O", settings.organization_name),
            ("OU", settings.organizational_unit_name),
        ]
    attributes.append(("CN", settings.ca_common_name))
    return build_name(attributes)


def host_name(settings: Config, common_name: str) -> x509.Name:
    """叶子证书主体 DN：固定的国家/省/城市字段加调用方提供的 CN。"""
    return build_name(_locality_attributes(settings) + [("CN", common_name)])


def is_ip_literal(address: str) -> bool:
    try:
        ipaddress.ip_address(address)
    except ValueError:
        return False
    return True


def encode_alt_names(domains: Iterable[str]) -> List[x509.GeneralName]:
    """
    将域名/IP 列表编码为 SAN 条目，保持原有顺序。
    IP 字面量编码为 iPAddress，其余编码为 dNSName；重复或空字符串原样保留。
    """
    names: List[x509.GeneralName] = []
    for address in domains:
        if is_ip_literal(address):
            names.append(x509.IPAddress(ipaddress.ip_address(address)))
        else:
            names.append(x509.DNSName(address))
    return names


def ca_extensions() -> List[tuple]:
    """CA 证书的扩展集合，返回 (扩展, critical) 列表。"""
    return [
        (x509.BasicConstraints(ca=True, path_length=None), True),
        (
            x509.KeyUsage(
                digital_signature=True,
                key_encipherment=False,
                key_cert_sign=True,
                crl_sign=True,
                content_commitment=False,
                data_encipherment=False,
                key_agreement=False,
                encipher_only=False,
                decipher_only=False,
            ),
            True,
        ),
        (x509.UnrecognizedExtension(NS_CERT_TYPE_OID, NS_CERT_TYPE_CA), False),
    ]


def host_extensions(ca_cert: x509.Certificate, domains: Sequence[str]) -> List[tuple]:
    """
    叶子证书的扩展集合。
    authorityKeyIdentifier 的 keyIdentifier 取 CA 序列号，并附带 CA 的签发者与序列号。
    """
    serial = ca_cert.serial_number
    key_identifier = serial.to_bytes((serial.bit_length() + 7) // 8 or 1, "big")
    extensions = [
        (x509.BasicConstraints(ca=False, path_length=None), True),
        (
            x509.KeyUsage(
                digital_signature=True,
                key_encipherment=True,
                key_cert_sign=False,
                crl_sign=False,
                content_commitment=False,
                data_encipherment=False,
                key_agreement=False,
                encipher_only=False,
                decipher_only=False,
            ),
            True,
        ),
        (x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), False),
        (
            x509.AuthorityKeyIdentifier(
                key_identifier=key_identifier,
                authority_cert_issuer=[x509.DirectoryName(ca_cert.issuer)],
                authority_cert_serial_number=serial,
            ),
            False,
        ),
    ]
    # 空的 GeneralNames 不是合法的 DER 编码
    if domains:
        extensions.append((x509.SubjectAlternativeName(encode_alt_names(domains)), False))
    return extensions
