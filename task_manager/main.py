import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from . import __version__
from .api import tasks
from .config import Settings, settings
from .context import Context
from .exceptions import Cancelled, DeadlineExceeded
from .middleware import LoggingMiddleware
from .services.task_service import TaskService
from .storage.task_store import TaskStore

# 配置日志
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 客户端已断开或服务正在关闭，响应通常无人接收
STATUS_CLIENT_CLOSED_REQUEST = 499


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    创建 FastAPI 应用

    Args:
        app_settings: 服务配置，默认使用环境变量中的配置

    Returns:
        FastAPI 应用实例
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 启动时加载任务
        logger.info("🚀 Task Manager 启动")
        logger.info(f"📦 任务文件: {app_settings.tasks_file}")

        root_context = Context.background()
        store = TaskStore(app_settings.tasks_file)

        init_context = root_context.with_timeout(app_settings.init_timeout)
        try:
            service = await run_in_threadpool(TaskService.from_store, init_context, store)
        finally:
            init_context.cancel()

        app.state.settings = app_settings
        app.state.root_context = root_context
        app.state.task_store = store
        app.state.task_service = service
        yield
        # 关闭时取消根上下文，进行中的请求在下一个检查点停止
        root_context.cancel()
        logger.info("👋 Task Manager 关闭")

    app = FastAPI(
        title="Task Manager API",
        description="基于 JSON 文件的任务管理服务，演示请求级取消、结构化校验与中间件组合",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS 配置
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "请求参数校验失败", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(DeadlineExceeded)
    async def deadline_exceeded_handler(request: Request, exc: DeadlineExceeded):
        logger.warning(f"请求超时: {request.method} {request.url.path}")
        return JSONResponse(status_code=408, content={"detail": "请求超时"})

    @app.exception_handler(Cancelled)
    async def cancelled_handler(request: Request, exc: Cancelled):
        logger.info(f"请求已取消: {request.method} {request.url.path}")
        return Response(status_code=STATUS_CLIENT_CLOSED_REQUEST)

    # 路由注册
    app.include_router(tasks.router)

    @app.get("/", summary="服务信息", tags=["系统"])
    async def root():
        """获取 API 服务信息"""
        return {"message": "Task Manager API is running", "version": __version__}

    @app.get("/health", summary="健康检查", tags=["系统"])
    async def health():
        """检查服务健康状态"""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "task_manager.main:app",
        host=settings.host,
        port=settings.port,
    )
