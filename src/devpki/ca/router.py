"""
证书签发服务的 FastAPI 路由定义。
"""

from fastapi import APIRouter, HTTPException
from loguru import logger

from . import services
from .schemas import (
    AltNamesRequest,
    AltNamesResponse,
    CertificateBundle,
    HostCertRequest,
    RootCARequest,
)

router = APIRouter(prefix="/ca", tags=["Certificate Authority"])


@router.post("/root-ca", response_model=CertificateBundle, response_model_exclude_none=True)
async def create_root_ca(req: RootCARequest) -> CertificateBundle:
    """
    创建一个自签名根 CA，可选使用口令加密私钥。
    """
    try:
        return services.create_root_ca_service(req)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"证书签发失败: {str(e)}")
    except Exception as e:
        logger.error(f"创建根 CA 时发生未预期错误: {e}")
        raise HTTPException(status_code=500, detail="内部服务器错误")


@router.post("/host-cert", response_model=CertificateBundle, response_model_exclude_none=True)
async def create_host_cert(req: HostCertRequest) -> CertificateBundle:
    """
    使用提交的根 CA 签发主机证书。
    """
    try:
        return services.create_host_cert_service(req)
    except ValueError as e:
        # 参数错误、缺少口令或口令错误，返回 400
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"证书签发失败: {str(e)}")
    except Exception as e:
        logger.error(f"签发主机证书时发生未预期错误: {e}")
        raise HTTPException(status_code=500, detail="内部服务器错误")


@router.post("/alt-names", response_model=AltNamesResponse)
async def alt_names(req: AltNamesRequest) -> AltNamesResponse:
    """
    读取服务端本地证书文件的 SAN。
    """
    try:
        return services.alt_names_service(req)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"读取证书 SAN 时发生未预期错误: {e}")
        raise HTTPException(status_code=500, detail="内部服务器错误")
