"""
配置加载模块：支持 .env、环境变量、工作目录 config.json（或 DEVPKI_CONFIG_FILE 指定）多来源合并。
公开接口：
- Config: 读取配置的设置类
- config: Config 的单例实例
内部方法：
- Config.settings_customise_sources: 自定义配置来源顺序
- Config.parse_domains: 将字符串/JSON 解析为 List[str]
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource


class Config(BaseSettings):
    # 证书 DN 固定字段
    country_name: str = "IL"
    state_name: str = "IL"
    locality_name: str = "Tel Aviv"
    organization_name: str = "Skitsanos"
    organizational_unit_name: str = "DevOps"
    ca_common_name: str = "Development RootCA"
    # full: C/ST/L/O/OU/CN；lean: C/ST/L/CN
    ca_dn_variant: Literal["full", "lean"] = "full"

    key_size: int = 2048
    backdate_days: int = 1
    # long: 提示时间无效时 CA 有效期延长 ca_validity_years 年；short: 当日结束
    ca_validity_policy: Literal["long", "short"] = "long"
    ca_validity_years: int = 100
    ca_digest: Literal["sha256", "sha512"] = "sha256"
    leaf_digest: Literal["sha256", "sha512"] = "sha512"

    output_dir: str = "certs"
    default_domains: List[str] = ["localhost", "127.0.0.1"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="DEVPKI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("country_name")
    @classmethod
    def check_country_name(cls, value: str) -> str:
        if len(value) != 2:
            raise ValueError("country_name 必须为两位 ISO 国家代码")
        return value

    @field_validator("key_size")
    @classmethod
    def check_key_size(cls, value: int) -> int:
        if value < 2048:
            raise ValueError("key_size 不能小于 2048")
        return value

    @field_validator("backdate_days")
    @classmethod
    def check_backdate_days(cls, value: int) -> int:
        if value not in (1, 2):
            raise ValueError("backdate_days 只能为 1 或 2")
        return value

    @field_validator("ca_validity_years")
    @classmethod
    def check_ca_validity_years(cls, value: int) -> int:
        if value < 1:
            raise ValueError("ca_validity_years 必须为正数")
        return value

    @field_validator("default_domains", mode="before")
    @classmethod
    def parse_domains(cls, value: Any) -> List[str]:
        """支持从环境变量以 JSON 或分隔符（逗号/分号/空白）解析 default_domains。"""
        if value is None or value == "":
            return []
        if isinstance(value, list):
            return [str(v) for v in value]
        if isinstance(value, str):
            text = value.strip()
            # 优先尝试 JSON
            try:
                loaded = json.loads(text)
                if isinstance(loaded, list):
                    return [str(v) for v in loaded]
            except ValueError:
                pass
            # 回退为分隔符拆分（, ; 空白）
            return [p for p in re.split(r"[\s,;]+", text) if p]
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """自定义配置来源顺序：入参 > 环境变量 > .env > config.json > secrets。"""

        class JsonFileSettingsSource(PydanticBaseSettingsSource):
            """从工作目录的 config.json（或 DEVPKI_CONFIG_FILE 指定路径）加载配置。"""

            def __init__(self, settings_cls):
                super().__init__(settings_cls)
                self._data: Dict[str, Any] | None = None

            def _load(self) -> None:
                if self._data is not None:
                    return
                cfg_path = os.environ.get("DEVPKI_CONFIG_FILE")
                path = Path(cfg_path) if cfg_path else Path.cwd() / "config.json"
                if not path.exists():
                    self._data = {}
                    return
                try:
                    with path.open("r", encoding="utf-8") as f:
                        data = json.load(f)
                    self._data = data if isinstance(data, dict) else {}
                except (OSError, ValueError):
                    self._data = {}

            def __call__(self) -> Dict[str, Any]:
                self._load()
                return dict(self._data or {})

            def get_field_value(self, field, field_name):  # type: ignore[override]
                """为满足抽象基类要求，按字段名返回字段值。"""
                self._load()
                data = self._data or {}
                if field_name in data:
                    return data[field_name], field_name, False
                return None, field_name, False

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonFileSettingsSource(settings_cls),
            file_secret_settings,
        )


config = Config()
