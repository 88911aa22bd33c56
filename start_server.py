#!/usr/bin/env python3
"""
启动任务管理服务（单 worker）
任务列表缓存在进程内存中，多 worker 会各自持有一份副本，因此只能单进程运行
"""
import sys
import os

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

if __name__ == "__main__":
    from task_manager.main import app
    import uvicorn
    from task_manager.config import settings

    print("=" * 50)
    print("🚀 启动 Task Manager 后端")
    print("=" * 50)
    print(f"Host: {settings.host}")
    print(f"Port: {settings.port}")
    print(f"Tasks file: {settings.tasks_file}")
    print(f"Request timeout: {settings.request_timeout}s")
    print("=" * 50)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        workers=1,
        log_level=settings.log_level.lower()
    )
