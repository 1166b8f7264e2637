# src/otpimport/common/models.py
from dataclasses import dataclass, asdict, field
from typing import Any, Dict

from .otpauth import (
    DEFAULT_ALGORITHM,
    DEFAULT_COUNTER,
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    DEFAULT_TYPE,
    build_uri,
    normalize_algorithm,
    normalize_secret,
    normalize_type,
)


@dataclass(frozen=True)
class CredentialRecord:
    # 核心字段：每条导入的 2FA 凭据
    secret: str                        # 规范化后的 Base32 密钥 (非空)
    issuer: str = ""                   # 服务/发行者名称
    account: str = ""                  # 账号名
    otp_type: str = DEFAULT_TYPE       # totp / hotp
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD       # 仅 totp 有意义
    counter: int = DEFAULT_COUNTER     # 仅 hotp 有意义
    algorithm: str = DEFAULT_ALGORITHM
    category: str = ""                 # 空字符串 = 未分类

    # 派生字段：构造时由其余字段计算，不可单独修改
    canonical_uri: str = field(init=False, default="")

    def __post_init__(self):
        secret = normalize_secret(self.secret)
        if not secret:
            raise ValueError("CredentialRecord requires a non-empty secret")

        # frozen dataclass 只能通过 object.__setattr__ 完成字段规范化
        object.__setattr__(self, "secret", secret)
        object.__setattr__(self, "issuer", (self.issuer or "").strip())
        object.__setattr__(self, "account", (self.account or "").strip())
        object.__setattr__(self, "category", (self.category or "").strip())
        object.__setattr__(self, "otp_type", normalize_type(self.otp_type))
        object.__setattr__(self, "algorithm", normalize_algorithm(self.algorithm))
        object.__setattr__(self, "canonical_uri", build_uri(
            secret=self.secret,
            issuer=self.issuer,
            account=self.account,
            otp_type=self.otp_type,
            digits=self.digits,
            period=self.period,
            counter=self.counter,
            algorithm=self.algorithm,
        ))

    @property
    def title(self) -> str:
        return self.issuer or self.account or "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
