from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from hospital_finance.common.error_handlers import register_error_handlers
from hospital_finance.core.config import settings
from hospital_finance.api.v1 import reports

app = FastAPI(title="Hospital Finance Reports", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register API routers
app.include_router(
    reports.router, prefix="/api/v1/reports", tags=["reports"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the Hospital Finance Reports APIs!"}
