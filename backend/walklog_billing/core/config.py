"""
应用配置模块

使用 Pydantic Settings 管理所有环境变量和配置。
配置从当前工作目录的 .env 文件读取，支持类型验证和默认值。

webhook 密钥只在这里读取一次，之后通过构造函数注入到
RevenueCatWebhookProcessor，业务代码不直接访问环境变量。
"""
import warnings  # 用于发出警告
from typing import Annotated, Any, Literal  # 类型注解工具

from pydantic import (
    AliasChoices,  # 允许多个环境变量名映射到同一字段
    AnyUrl,  # URL 类型验证
    BeforeValidator,  # 字段验证前的转换器
    Field,
    HttpUrl,  # HTTP URL 类型验证
    PostgresDsn,  # PostgreSQL 连接字符串验证
    computed_field,  # 计算字段装饰器
    model_validator,  # 模型验证器装饰器
)
from pydantic_settings import BaseSettings, SettingsConfigDict  # 配置管理
from typing_extensions import Self  # 用于类型注解中引用自身类型


def parse_cors(v: Any) -> list[str] | str:
    """
    解析 CORS 配置值

    支持逗号分隔的字符串或列表格式。

    Raises:
        ValueError: 当输入格式不正确时
    """
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    """
    应用配置类

    配置来源优先级：
    1. 环境变量（最高优先级）
    2. .env 文件
    3. 代码中的默认值（最低优先级）
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,  # 忽略空的环境变量
        extra="ignore",  # 忽略未定义的额外字段
    )
    API_PREFIX: str = "/api"  # API 路径前缀
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        """CORS 允许的源列表（去除尾部斜杠）"""
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    PROJECT_NAME: str = "walklog-billing"
    SENTRY_DSN: HttpUrl | None = None

    # Snowflake
    SNOWFLAKE_NODE_ID: int = 0

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+psycopg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # RevenueCat webhook 配置
    # RevenueCat 后台配置的 Authorization 头部值为 "Bearer <token>"
    REVENUECAT_WEBHOOK_TOKEN: str | None = Field(
        default=None,
        validation_alias=AliasChoices("REVENUECAT_WEBHOOK_TOKEN", "RC_WEBHOOK_TOKEN"),
    )
    # 为 True 时，处理失败的事件在重投时会被重新处理，而不是当作重复事件
    REVENUECAT_RETRY_FAILED_EVENTS: bool = False
    BILLING_SUBSCRIPTION_SOURCE: str = "revenuecat"  # 写入 user_profiles.subscription_source
    WEBHOOK_MAX_BODY_BYTES: int = 2 * 1024 * 1024  # webhook 请求体上限（2 MiB）

    def _check_default_secret(self, var_name: str, value: str | None) -> None:
        """
        检查敏感配置是否使用了默认值 "changethis"

        本地环境只警告，其它环境直接报错。

        Raises:
            ValueError: 在非本地环境使用默认值时
        """
        if value == "changethis":
            message = (
                f'The value of {var_name} is "changethis", '
                "for security, please change it, at least for deployments."
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)

    @model_validator(mode="after")
    def _enforce_non_default_secrets(self) -> Self:
        self._check_default_secret("POSTGRES_PASSWORD", self.POSTGRES_PASSWORD)
        self._check_default_secret("REVENUECAT_WEBHOOK_TOKEN", self.REVENUECAT_WEBHOOK_TOKEN)

        return self


# 创建全局配置实例，整个应用共享
settings = Settings()  # type: ignore
