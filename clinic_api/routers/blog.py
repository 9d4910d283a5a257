from typing import Optional

from fastapi import APIRouter, Query

from clinic_api.dependencies import BlogServiceDep, PageQuery
from clinic_api.models.blog import BlogCreate, BlogStatus, BlogUpdate

router = APIRouter(prefix="/api/blog", tags=["blog"])


@router.post("", status_code=201)
async def create_blog(data: BlogCreate, service: BlogServiceDep):
    blog = await service.create(data)
    return {"success": True, "message": "Blog created", "data": blog.to_public()}


@router.get("")
async def list_blogs(
    service: BlogServiceDep,
    params: PageQuery,
    status: Optional[BlogStatus] = None,
    category: Optional[str] = Query(None, max_length=100),
):
    """List blog posts, most recently published first"""
    result = await service.list(
        page=params.page,
        limit=params.limit,
        status=status.value if status else None,
        category=category.strip() if category else None,
        search=params.search,
    )
    return {
        "success": True,
        "data": {
            "blogs": result.items,
            "pagination": result.pagination.model_dump(by_alias=True),
        },
    }


@router.get("/{slug}")
async def get_blog(slug: str, service: BlogServiceDep):
    blog = await service.get_by_slug(slug.strip())
    return {"success": True, "data": blog.to_public()}


@router.put("/{blog_id}")
async def update_blog(blog_id: str, data: BlogUpdate, service: BlogServiceDep):
    blog = await service.update(blog_id, data)
    return {"success": True, "message": "Blog updated", "data": blog.to_public()}


@router.delete("/{blog_id}")
async def delete_blog(blog_id: str, service: BlogServiceDep):
    await service.delete(blog_id)
    return {"success": True, "message": "Blog deleted"}
