"""
应用启动前检查脚本

在应用启动前等待数据库可用，然后根据模型创建缺失的表。
Docker Compose 启动时数据库容器可能还在初始化，通过重试避免启动失败。

使用方式：
    python -m walklog_billing.backend_pre_start
"""
import logging  # 日志记录

from sqlalchemy import Engine  # SQLAlchemy 引擎类型
from sqlmodel import Session, select  # SQLModel 会话和查询
from tenacity import (  # 重试库，用于实现重试机制
    after_log,  # 重试后的日志记录
    before_log,  # 重试前的日志记录
    retry,  # 重试装饰器
    stop_after_attempt,  # 停止条件：达到最大尝试次数
    wait_fixed,  # 等待策略：固定间隔
)

from walklog_billing.core.db import engine, init_db

logger = logging.getLogger(__name__)

# 重试配置
max_tries = 60 * 5  # 最大尝试次数：300 次（5 分钟，每秒一次）
wait_seconds = 1  # 每次重试间隔：1 秒


@retry(
    stop=stop_after_attempt(max_tries),
    wait=wait_fixed(wait_seconds),
    before=before_log(logger, logging.INFO),
    after=after_log(logger, logging.WARN),
)
def init(db_engine: Engine) -> None:
    """
    检查数据库连接

    执行 select(1)，失败时记录日志并重新抛出，由 tenacity 重试。
    """
    try:
        with Session(db_engine) as session:
            session.exec(select(1))
    except Exception as e:
        logger.error(e)
        raise e


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger.info("Initializing service")
    init(engine)
    init_db(engine)
    logger.info("Service finished initializing")


if __name__ == "__main__":  # pragma: no cover
    main()
