from bodybind.api.main import app

if __name__ == "__main__":
    import logging
    import os
    import uvicorn
    logging.basicConfig(level=(os.getenv("BODYBIND_LOG_LEVEL") or "INFO").upper())
    host = os.getenv("BODYBIND_HOST", "0.0.0.0")
    port = int(os.getenv("BODYBIND_PORT", "8001"))
    uvicorn.run(app, host=host, port=port)
