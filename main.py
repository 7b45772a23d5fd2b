#!/usr/bin/env python3
"""
网页转PDF服务

提供HTTP API接口，渲染目标网页并返回PDF
"""

from flask import Flask, request, jsonify
from datetime import datetime
import logging

import config
from config import PORT, LOG_LEVEL, ROBUST_POLICY, SIMPLE_POLICY, RenderPolicy
from render_service import handle_request

# 配置日志
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def _render_view(policy: RenderPolicy):
    def view():
        response = handle_request(
            policy,
            request.method,
            query=request.args.to_dict(),
            body=request.get_data()
        )
        return response.to_flask()
    view.__name__ = f"render_{policy.name.replace('-', '_')}"
    return view

def create_app() -> Flask:
    """创建Flask应用"""
    config.validate_capabilities()

    app = Flask(__name__)

    for policy in (ROBUST_POLICY, SIMPLE_POLICY):
        view = _render_view(policy)
        methods = list(policy.allowed_methods)
        app.add_url_rule(f"/{policy.name}", view_func=view, methods=methods)
        app.add_url_rule(f"/.netlify/functions/{policy.name}", endpoint=f"{view.__name__}_netlify",
                         view_func=view, methods=methods)

    @app.route("/", methods=["GET"])
    def health_check():
        return jsonify({
            "status": "PDF Render API is running",
            "timestamp": datetime.now().isoformat(),
            "endpoints": {
                f"/{ROBUST_POLICY.name}": "等待页面高度收敛后生成PDF (GET)",
                f"/{SIMPLE_POLICY.name}": "快速生成PDF，支持备用浏览器 (GET/POST)",
                "parameters": {
                    "target": "目标网页 URL (必填)"
                }
            },
            "example": f"/{ROBUST_POLICY.name}?target=https://example.com/blog-post"
        })

    @app.route("/health", methods=["GET"])
    def simple_health():
        return jsonify({"status": "ok"})

    return app

app = create_app()

if __name__ == "__main__":
    logger.info(f"🌐 启动HTTP服务 - 端口: {PORT}")
    app.run(host="0.0.0.0", port=PORT)
