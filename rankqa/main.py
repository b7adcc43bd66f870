"""
Main application entry point.
"""

from fastapi import FastAPI

from rankqa import __version__
from rankqa.api.v1.evaluation_endpoints import router as evaluation_router

app = FastAPI(
    title="Ranking Quality Evaluation API",
    description="Scores search result rankings against relevance judgments.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Include API routers
app.include_router(evaluation_router, prefix="/api/v1", tags=["evaluation"])

@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Ranking Quality Evaluation API",
        "docs": "/docs",
        "health": "/api/v1/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rankqa.main:app", host="0.0.0.0", port=8000, reload=True)
