"""
命令行入口：初始化开发 CA、签发主机证书、查看证书 SAN。

    devpki init [--out DIR] [--passphrase P] [--valid-until ISO]
    devpki host CN DOMAIN... [--out DIR] [--name N] [--valid-until ISO] [--passphrase P]
    devpki altnames PATH
"""

import argparse
from datetime import datetime
from pathlib import Path
from typing import List

from loguru import logger

from src.devpki.ca import core, services
from src.devpki.ca.errors import CertificateError
from src.devpki.config import config
from src.devpki.log import setup_logging


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"无效的 ISO 时间: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devpki",
        description="Bootstrap a local development CA and issue host certificates",
    )
    parser.add_argument("--log-level", default=config.log_level, help="loguru log level")
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init", help="create root CA and a localhost certificate")
    p_init.add_argument("--out", default=config.output_dir, help="output directory")
    p_init.add_argument("--passphrase", default=None, help="encrypt root.key with this passphrase")
    p_init.add_argument("--valid-until", type=_parse_datetime, default=None, help="root CA expiry (ISO 8601)")
    p_init.add_argument("--common-name", default="localhost", help="host certificate CN")

    p_host = sub.add_parser("host", help="issue a host certificate from an existing root CA")
    p_host.add_argument("common_name", help="certificate CN")
    p_host.add_argument("domains", nargs="*", help="DNS names or IP addresses for the SAN")
    p_host.add_argument("--out", default=config.output_dir, help="directory holding root.crt/root.key")
    p_host.add_argument("--name", default=None, help="output file name, defaults to the CN")
    p_host.add_argument("--valid-until", type=_parse_datetime, default=None, help="certificate expiry (ISO 8601)")
    p_host.add_argument("--passphrase", default=None, help="passphrase of root.key")

    p_alt = sub.add_parser("altnames", help="print the SAN of a PEM certificate")
    p_alt.add_argument("path", help="certificate file")
    return parser


def _cmd_init(args: argparse.Namespace) -> int:
    bundles = services.bootstrap(
        args.out,
        common_name=args.common_name,
        ca_valid_until=args.valid_until,
        passphrase=args.passphrase,
    )
    logger.info(f"根 CA 有效期至 {bundles['root'].not_after.isoformat()}")
    return 0


def _cmd_host(args: argparse.Namespace) -> int:
    root = services.load_bundle(args.out, services.ROOT_NAME)
    host = core.create_host_cert(
        args.valid_until,
        args.common_name,
        args.domains,
        root,
        args.passphrase,
    )
    services.write_bundle(host, Path(args.out), args.name or args.common_name)
    return 0


def _cmd_altnames(args: argparse.Namespace) -> int:
    print(core.get_alt_names(args.path))
    return 0


COMMANDS = {
    "init": _cmd_init,
    "host": _cmd_host,
    "altnames": _cmd_altnames,
}


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    try:
        return COMMANDS[args.command](args)
    except (CertificateError, FileNotFoundError) as e:
        logger.error(f"{args.command} 失败: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
