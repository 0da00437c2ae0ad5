from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.middleware.cors import CORSMiddleware

from telehealth.api import appointments, auth, doctors, medical_records, prescriptions
from telehealth.core import config
from telehealth.core.errors import TelehealthError, TransportError
from telehealth.core.logger import logger
from telehealth.db.client import close_db, init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
    except PyMongoError as e:
        logger.error(f"Could not ensure MongoDB indexes: {str(e)}")
    yield
    close_db()


app = FastAPI(title="Telehealth", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TelehealthError)
async def telehealth_error_handler(request: Request, exc: TelehealthError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(PyMongoError)
async def storage_error_handler(request: Request, exc: PyMongoError):
    logger.error(f"Storage error on {request.method} {request.url.path}: {str(exc)}")
    err = TransportError()
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


app.include_router(auth.router)
app.include_router(doctors.router)
app.include_router(appointments.router)
app.include_router(prescriptions.router)
app.include_router(medical_records.router)


@app.get("/")
async def root():
    return {"message": "Telehealth API"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("telehealth.main:app", host="0.0.0.0", port=int(config.PORT), reload=False)
