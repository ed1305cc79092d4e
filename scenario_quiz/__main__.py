import uvicorn

from .core.config import settings


if __name__ == "__main__":
    uvicorn.run("scenario_quiz.main:app", host="0.0.0.0", port=settings.BACKEND_PORT)
