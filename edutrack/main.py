import logging

from fastapi import FastAPI

from edutrack import config
from edutrack.database import Base, engine
from edutrack import models  # noqa: F401  registers the tables
from edutrack.errors import register_error_handlers
from edutrack.routers import auth as auth_router, students as students_router, notifications as notifications_router
from edutrack.utils.push import PushNotificationService, db_token_lookup

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="EduTrack")
Base.metadata.create_all(bind=engine)

app.state.push = PushNotificationService(mode=config.PUSH_MODE, token_lookup=db_token_lookup)
register_error_handlers(app)

app.include_router(auth_router.router)
app.include_router(students_router.router)
app.include_router(notifications_router.router)

@app.get("/health")
def health():
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("edutrack.main:app", host="127.0.0.1", port=5000, reload=True)
