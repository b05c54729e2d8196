from fastapi import APIRouter

from portfolio.v1 import auth, posts, projects, uploads

router = APIRouter()
router.include_router(auth.router)
router.include_router(posts.router)
router.include_router(projects.router)
router.include_router(uploads.router)
