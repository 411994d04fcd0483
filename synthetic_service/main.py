import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from synthetic_service.config import get_settings

load_dotenv()

# 配置日志级别（LOG_LEVEL，默认 INFO）
logging.basicConfig(
    level=get_settings().LOG_LEVEL.upper(),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

from synthetic_service.api import routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # 先等后台处理结束，再关闭共享的 Dynatrace client
    await routes.trigger_service.drain()
    await routes.dynatrace_http_client.aclose()


def create_app() -> FastAPI:
    """
    创建 FastAPI 应用，并挂载 CloudEvent 入口。
    """
    settings = get_settings()
    app = FastAPI(
        title="Dynatrace Synthetic Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Keptn distributor 把事件 POST 到根路径
    app.include_router(routes.router)

    @app.get("/health", summary="健康检查")
    async def health_check():
        return {"status": "ok", "service": settings.SERVICE_NAME}

    return app


app = create_app()
