import uvicorn

from access_control.core.app_factory import create_app

app = create_app()


if __name__ == "__main__":
    uvicorn.run("access_control.main:app", host="0.0.0.0", port=8000)
