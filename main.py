import uvicorn

from src.main.config import config

if __name__ == "__main__":
    uvicorn.run(
        "src.main.web:app",
        host="0.0.0.0",
        port=8000,
        reload=config.app.DEBUG,
        proxy_headers=config.app.TRUST_PROXY_HEADERS,
        access_log=False,
    )
