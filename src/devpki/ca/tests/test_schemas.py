"""
测试 schemas.py 模块。
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.devpki.ca.schemas import CertificateBundle, HostCertRequest, RootCARequest

NOT_BEFORE = "2024-01-01T00:00:00Z"
NOT_AFTER = "2025-01-01T00:00:00Z"


def test_certificate_bundle_snake_case():
    bundle = CertificateBundle(
        certificate="cert",
        private_key="key",
        not_before=NOT_BEFORE,
        not_after=NOT_AFTER,
    )
    assert bundle.private_key == "key"
    assert bundle.encrypted is None
    assert bundle.not_before == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert "encrypted" not in bundle.model_dump(exclude_none=True)


def test_certificate_bundle_camel_case_aliases():
    """兼容 privateKey / notBefore / notAfter 形式的字段名"""
    bundle = CertificateBundle.model_validate(
        {
            "certificate": "cert",
            "privateKey": "key",
            "encrypted": True,
            "notBefore": NOT_BEFORE,
            "notAfter": NOT_AFTER,
        }
    )
    assert bundle.private_key == "key"
    assert bundle.encrypted is True
    assert bundle.model_dump()["private_key"] == "key"


def test_certificate_bundle_missing_private_key():
    with pytest.raises(ValidationError):
        CertificateBundle(certificate="cert", not_before=NOT_BEFORE, not_after=NOT_AFTER)


def test_root_ca_request_defaults():
    req = RootCARequest()
    assert req.valid_until is None
    assert req.passphrase is None


def test_host_cert_request_requires_list_of_domains():
    root_ca = {"certificate": "c", "private_key": "k", "not_before": NOT_BEFORE, "not_after": NOT_AFTER}
    with pytest.raises(ValidationError):
        HostCertRequest(
            valid_until=NOT_AFTER,
            common_name="localhost",
            valid_domains="not-an-array",
            root_ca=root_ca,
        )
    req = HostCertRequest(
        valid_until=NOT_AFTER,
        common_name="localhost",
        valid_domains=["localhost"],
        root_ca=root_ca,
    )
    assert req.root_password is None
    assert req.root_ca.certificate == "c"
