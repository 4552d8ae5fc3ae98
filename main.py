from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from routers import profiles, parse, refresh
from processor.config import ALLOWED_ORIGINS

app = FastAPI(title="Hardware Comparison API")

# Allow Frontend (Localhost:3000) to talk to Backend
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(profiles.router)
app.include_router(parse.router, prefix="/api/parse", tags=["Parse"])
app.include_router(refresh.router)

@app.get("/")
def read_root():
    return {"status": "ok", "message": "Backend is running. Visit /docs for Swagger UI."}
