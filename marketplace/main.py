from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from marketplace.config import settings
from marketplace.routers import auth
from marketplace.routers import session

app = FastAPI(title="Property Marketplace Session Service")
app.add_middleware(CORSMiddleware, allow_origins=settings.ALLOWED_ORIGINS, allow_credentials=True, allow_methods=["*"], allow_headers=["*"])

app.include_router(session.router)
app.include_router(auth.router)

@app.get("/health")
async def root_health():
    return "ok"
