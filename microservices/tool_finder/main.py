"""Main module for the AI tool finder."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from envs.env_loader import EnvLoader
from microservices.tool_finder.routes import chat_routes, find_tools, health_routes

env = EnvLoader()

logging.basicConfig(
    level=env.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="AI Tool Finder API",
    docs_url="/tool_finder/docs",
    redoc_url="/tool_finder/redoc",
    openapi_url="/tool_finder/openapi.json",
)

# Enable CORS for the browser UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(find_tools, prefix="/tool_finder", tags=["Tools"])
app.include_router(chat_routes, prefix="/tool_finder", tags=["Chat"])
app.include_router(health_routes, prefix="/tool_finder/health", tags=["Health"])

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "microservices.tool_finder.main:app",
        host=env.host,
        port=env.port,
        reload=env.debug,
        workers=1,
        timeout_keep_alive=30,
    )
