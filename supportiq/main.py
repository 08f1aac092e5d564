"""
SupportIQ Deflection - FastAPI Backend
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from supportiq import __version__
from supportiq.config import get_settings
from supportiq.routes import deflection, insights, health

settings = get_settings()

app = FastAPI(
    title="SupportIQ Deflection",
    description="Ticket deflection pipeline and pattern analysis API",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(deflection.router)
app.include_router(insights.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"message": "SupportIQ Deflection API", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
