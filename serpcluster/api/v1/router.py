"""API v1 router aggregator."""

from fastapi import APIRouter

from serpcluster.api.v1.cluster.routes import router as cluster_router

api_router = APIRouter()

api_router.include_router(cluster_router, prefix="/cluster", tags=["Clustering"])
