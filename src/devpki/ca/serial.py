"""
证书序列号生成。
随机抽取 20 字节并转为十六进制，再清除最高位，保证按大端补码解析时仍为正数。
"""

import secrets

SERIAL_BYTES = 20


def make_positive(hex_string: str) -> str:
    """
    若首位十六进制数字 >= 8，则减去 8，其余数字保持不变。
    :param hex_string: 十六进制字符串。
    :return: 首位 < 8 的十六进制字符串。
    """
    most_significant = int(hex_string[0], 16)
    if most_significant < 8:
        return hex_string
    return format(most_significant - 8, "x") + hex_string[1:]


def next_serial() -> str:
    """生成一个新的正数序列号（十六进制字符串）。不保证跨调用唯一。"""
    return make_positive(secrets.token_hex(SERIAL_BYTES))


def serial_to_int(hex_string: str) -> int:
    return int(hex_string, 16)
