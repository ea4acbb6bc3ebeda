"""News router: /api/v1/news. Static content, no backend calls."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from dumptracker.news.articles import ARTICLES, Article, get_article

router = APIRouter(prefix="/api/v1/news", tags=["News"])


class ArticleSummary(BaseModel):
    id: str
    title: str
    author: str
    date: str


@router.get("", response_model=list[ArticleSummary])
async def list_articles() -> list[ArticleSummary]:
    return [ArticleSummary(id=a.id, title=a.title, author=a.author, date=a.date) for a in ARTICLES]


@router.get("/{article_id}", response_model=Article)
async def read_article(article_id: str) -> Article:
    article = get_article(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return article
