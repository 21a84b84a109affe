"""
测试 names.py 模块：DN 常量与 SAN 编码。
"""

import ipaddress

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID

from src.devpki.ca import names
from src.devpki.config import Config


@pytest.mark.parametrize("address", ["127.0.0.1", "10.1.2.3", "::1", "fe80::1", "2001:db8::42"])
def test_is_ip_literal_true(address):
    assert names.is_ip_literal(address)


@pytest.mark.parametrize("address", ["localhost", "example.com", "256.1.1.1", "1.2.3", "*.local", ""])
def test_is_ip_literal_false(address):
    assert not names.is_ip_literal(address)


def test_encode_alt_names_preserves_order_and_type():
    encoded = names.encode_alt_names(["localhost", "127.0.0.1", "::1", "localhost"])
    assert encoded == [
        x509.DNSName("localhost"),
        x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
        x509.IPAddress(ipaddress.ip_address("::1")),
        x509.DNSName("localhost"),
    ]


def test_encode_alt_names_empty():
    assert names.encode_alt_names([]) == []


def test_ca_name_full_variant():
    name = names.ca_name(Config())
    assert [(attr.oid, attr.value) for attr in name] == [
        (NameOID.COUNTRY_NAME, "IL"),
        (NameOID.STATE_OR_PROVINCE_NAME, "IL"),
        (NameOID.LOCALITY_NAME, "Tel Aviv"),
        (NameOID.ORGANIZATION_NAME, "Skitsanos"),
        (NameOID.ORGANIZATIONAL_UNIT_NAME, "DevOps"),
        (NameOID.COMMON_NAME, "Development RootCA"),
    ]


def test_ca_name_lean_variant():
    name = names.ca_name(Config(ca_dn_variant="lean", ca_common_name="Test Root"))
    assert [attr.value for attr in name] == ["IL", "IL", "Tel Aviv", "Test Root"]


def test_host_name_uses_common_name():
    name = names.host_name(Config(), "api.local")
    assert [(attr.oid, attr.value) for attr in name] == [
        (NameOID.COUNTRY_NAME, "IL"),
        (NameOID.STATE_OR_PROVINCE_NAME, "IL"),
        (NameOID.LOCALITY_NAME, "Tel Aviv"),
        (NameOID.COMMON_NAME, "api.local"),
    ]


def test_ca_extensions_contents():
    extensions = dict((type(ext), critical) for ext, critical in names.ca_extensions())
    assert extensions[x509.BasicConstraints] is True
    assert extensions[x509.KeyUsage] is True
    assert x509.UnrecognizedExtension in extensions
