"""
测试 router.py 模块。
"""

from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.devpki.ca.errors import (
    InvalidArgumentError,
    MissingCredentialError,
    NotFoundError,
    SigningFailureError,
)
from src.devpki.ca.router import router
from src.devpki.ca.schemas import CertificateBundle, RootCARequest


# 创建一个 FastAPI 应用并包含我们的路由
app = FastAPI()
app.include_router(router)

# 创建测试客户端
client = TestClient(app)

BUNDLE = CertificateBundle(
    certificate="cert_pem",
    private_key="key_pem",
    not_before="2024-01-01T00:00:00Z",
    not_after="2025-01-01T00:00:00Z",
)

HOST_REQ = {
    "valid_until": "2030-01-01T00:00:00Z",
    "common_name": "localhost",
    "valid_domains": ["localhost", "127.0.0.1"],
    "root_ca": {
        "certificate": "cert_pem",
        "private_key": "key_pem",
        "not_before": "2024-01-01T00:00:00Z",
        "not_after": "2025-01-01T00:00:00Z",
    },
}


def test_create_root_ca_endpoint():
    """测试创建根 CA 端点，未加密时响应中不包含 encrypted"""
    with patch("src.devpki.ca.services.create_root_ca_service", return_value=BUNDLE) as mock_service:
        response = client.post("/ca/root-ca", json={})

        assert response.status_code == 200
        body = response.json()
        assert body["certificate"] == "cert_pem"
        assert body["private_key"] == "key_pem"
        assert "encrypted" not in body
        mock_service.assert_called_once_with(RootCARequest())


def test_create_root_ca_endpoint_runtime_error():
    with patch(
        "src.devpki.ca.services.create_root_ca_service",
        side_effect=SigningFailureError("root_ca", "证书签名失败"),
    ):
        response = client.post("/ca/root-ca", json={})
        assert response.status_code == 500
        assert "证书签发失败" in response.json()["detail"]


def test_create_host_cert_endpoint():
    with patch("src.devpki.ca.services.create_host_cert_service", return_value=BUNDLE) as mock_service:
        response = client.post("/ca/host-cert", json=HOST_REQ)

        assert response.status_code == 200
        assert response.json()["certificate"] == "cert_pem"
        req = mock_service.call_args.args[0]
        assert req.common_name == "localhost"
        assert req.valid_domains == ["localhost", "127.0.0.1"]


def test_create_host_cert_endpoint_invalid_argument():
    with patch(
        "src.devpki.ca.services.create_host_cert_service",
        side_effect=InvalidArgumentError("common_name", '"common_name" 必须为非空字符串'),
    ):
        response = client.post("/ca/host-cert", json=HOST_REQ)
        assert response.status_code == 400
        assert "common_name" in response.json()["detail"]


def test_create_host_cert_endpoint_missing_credential():
    with patch(
        "src.devpki.ca.services.create_host_cert_service",
        side_effect=MissingCredentialError("root_password", "缺少根 CA 私钥口令 (root password)"),
    ):
        response = client.post("/ca/host-cert", json=HOST_REQ)
        assert response.status_code == 400


def test_create_host_cert_endpoint_validation_error():
    """valid_domains 不是列表时返回 422"""
    req = dict(HOST_REQ, valid_domains="not-an-array")
    response = client.post("/ca/host-cert", json=req)
    assert response.status_code == 422


def test_create_host_cert_endpoint_unexpected_error():
    with patch("src.devpki.ca.services.create_host_cert_service", side_effect=KeyError("boom")):
        response = client.post("/ca/host-cert", json=HOST_REQ)
        assert response.status_code == 500
        assert response.json() == {"detail": "内部服务器错误"}


def test_alt_names_endpoint_not_found(tmp_path):
    response = client.post("/ca/alt-names", json={"path": str(tmp_path / "missing.crt")})
    assert response.status_code == 404


def test_alt_names_endpoint_not_found_from_service():
    with patch(
        "src.devpki.ca.services.alt_names_service",
        side_effect=NotFoundError("path", "路径不存在: /x"),
    ):
        response = client.post("/ca/alt-names", json={"path": "/x"})
        assert response.status_code == 404
        assert response.json() == {"detail": "路径不存在: /x"}


def test_full_flow_over_http(tmp_path):
    """真实签发流程：创建根 CA，再签发主机证书并读取 SAN"""
    root = client.post("/ca/root-ca", json={"passphrase": "secret123"})
    assert root.status_code == 200
    root_body = root.json()
    assert root_body["encrypted"] is True

    req = dict(HOST_REQ, root_ca=root_body)
    missing = client.post("/ca/host-cert", json=req)
    assert missing.status_code == 400

    host = client.post("/ca/host-cert", json=dict(req, root_password="secret123"))
    assert host.status_code == 200
    host_body = host.json()
    assert "encrypted" not in host_body

    cert_path = tmp_path / "client.crt"
    cert_path.write_text(host_body["certificate"], encoding="utf-8")
    alt = client.post("/ca/alt-names", json={"path": str(cert_path)})
    assert alt.status_code == 200
    assert alt.json()["alt_names"] == "DNS:localhost, IP Address:127.0.0.1"
