""" Content (gallery & articles) endpoints.

Articles follow the gallery logic: public list of published items + admin CRUD.
"""
from datetime import datetime, timezone
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import asc
import time
import re

from app.api.deps import require_admin
from app.db.session import get_db
from app.models.article import Article
from app.models.gallery import GalleryImage
from app.schemas.i18n import LANGUAGES, MultilingualText

router = APIRouter()

# Simple in-process TTL cache (invalidate on write). Not multi-process safe.
_CACHE_TTL = 60  # seconds
_cache_store = {
    'gallery': {'ts': 0, 'data': []},
    'articles': {'ts': 0, 'data': []},
}

def _cache_get(key: str):
    now = time.time()
    entry = _cache_store.get(key)
    if not entry:
        return None
    if now - entry['ts'] > _CACHE_TTL:
        return None
    return entry['data']

def _cache_set(key: str, data):
    _cache_store[key] = {'ts': time.time(), 'data': data}

def _cache_invalidate(*keys: str):
    for k in keys:
        if k in _cache_store:
            _cache_store[k]['ts'] = 0

# Validation helpers
SLUG_RE = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')

def _text(value) -> dict:
    if value is not None and not isinstance(value, dict):
        raise HTTPException(status_code=400, detail=f'multilingual fields must be objects with keys {", ".join(LANGUAGES)}')
    return MultilingualText.from_db(value).model_dump()

def _validate_article_payload(payload: dict, creating: bool = True):
    title = _text(payload.get('title'))
    if creating and not title['en'].strip():
        raise HTTPException(status_code=400, detail='title.en required')
    slug = (payload.get('slug') or '').strip().lower()
    if creating and not slug:
        raise HTTPException(status_code=400, detail='slug required')
    if slug and not SLUG_RE.match(slug):
        raise HTTPException(status_code=400, detail='invalid slug format')
    return title, slug

def _gallery_dict(g: GalleryImage, admin: bool = False) -> dict:
    data = {
        'id': g.id,
        'image_url': g.image_url,
        'title': g.title,
        'description': g.description,
        'display_order': g.display_order,
    }
    if admin:
        data['is_active'] = g.is_active
    return data

def _article_dict(a: Article, full: bool = False) -> dict:
    data = {
        'id': a.id,
        'slug': a.slug,
        'title': MultilingualText.from_db(a.title).model_dump(),
        'excerpt': MultilingualText.from_db(a.excerpt).model_dump(),
        'featured_image': a.featured_image,
        'parent_id': a.parent_id,
        'sort_order': a.sort_order,
        'published_at': a.published_at.isoformat() if a.published_at else None,
    }
    if full:
        data['content'] = MultilingualText.from_db(a.content).model_dump()
        data['is_published'] = a.is_published
    return data

# Public endpoints
@router.get('/gallery', response_model=List[dict])
def public_gallery(db: Session = Depends(get_db)):
    cached = _cache_get('gallery')
    if cached is not None:
        return cached
    items = db.query(GalleryImage).filter(GalleryImage.is_active == True).order_by(asc(GalleryImage.display_order), asc(GalleryImage.id)).all()  # noqa: E712
    data = [_gallery_dict(g) for g in items]
    _cache_set('gallery', data)
    return data

@router.get('/articles', response_model=List[dict])
def public_articles(db: Session = Depends(get_db)):
    cached = _cache_get('articles')
    if cached is not None:
        return cached
    items = db.query(Article).filter(Article.is_published == True).order_by(asc(Article.sort_order), asc(Article.id)).all()  # noqa: E712
    data = [_article_dict(a) for a in items]
    _cache_set('articles', data)
    return data

@router.get('/articles/{slug}', response_model=dict)
def public_article(slug: str, db: Session = Depends(get_db)):
    a = db.query(Article).filter(Article.slug == slug.lower(), Article.is_published == True).first()  # noqa: E712
    if not a:
        raise HTTPException(status_code=404, detail='not found')
    data = _article_dict(a, full=True)
    data.pop('is_published')
    return data

# Admin CRUD for gallery
@router.post('/admin/gallery', dependencies=[Depends(require_admin)], response_model=dict)
def create_gallery_image(payload: dict, db: Session = Depends(get_db)):
    image_url = (payload.get('image_url') or '').strip()
    if not image_url:
        raise HTTPException(status_code=400, detail='image_url required')
    g = GalleryImage(
        image_url=image_url,
        title=payload.get('title'),
        description=payload.get('description'),
        display_order=payload.get('display_order', 0),
        is_active=bool(payload.get('is_active', True)),
    )
    db.add(g)
    db.commit()
    db.refresh(g)
    _cache_invalidate('gallery')
    return {'id': g.id}

@router.get('/admin/gallery', dependencies=[Depends(require_admin)], response_model=List[dict])
def list_gallery(db: Session = Depends(get_db)):
    items = db.query(GalleryImage).order_by(asc(GalleryImage.display_order), asc(GalleryImage.id)).all()
    return [_gallery_dict(g, admin=True) for g in items]

@router.put('/admin/gallery/{image_id}', dependencies=[Depends(require_admin)], response_model=dict)
def update_gallery_image(image_id: int, payload: dict, db: Session = Depends(get_db)):
    g = db.query(GalleryImage).filter(GalleryImage.id == image_id).first()
    if not g:
        raise HTTPException(status_code=404, detail='not found')
    for key in ['image_url', 'title', 'description', 'display_order', 'is_active']:
        if key in payload:
            setattr(g, key, payload[key])
    db.commit()
    _cache_invalidate('gallery')
    return {'status': 'ok'}

@router.delete('/admin/gallery/{image_id}', dependencies=[Depends(require_admin)], response_model=dict)
def delete_gallery_image(image_id: int, db: Session = Depends(get_db)):
    g = db.query(GalleryImage).filter(GalleryImage.id == image_id).first()
    if not g:
        raise HTTPException(status_code=404, detail='not found')
    db.delete(g)
    db.commit()
    _cache_invalidate('gallery')
    return {'status': 'deleted'}

# Admin CRUD for articles
@router.post('/admin/articles', dependencies=[Depends(require_admin)], response_model=dict)
def create_article(payload: dict, db: Session = Depends(get_db)):
    title, slug = _validate_article_payload(payload, creating=True)
    if db.query(Article.id).filter(Article.slug == slug).first():
        raise HTTPException(status_code=409, detail='slug already exists')
    published = bool(payload.get('is_published', False))
    a = Article(
        title=title,
        content=_text(payload.get('content')),
        excerpt=_text(payload.get('excerpt')),
        slug=slug,
        featured_image=payload.get('featured_image'),
        parent_id=payload.get('parent_id'),
        sort_order=payload.get('sort_order', 0),
        is_published=published,
        published_at=datetime.now(timezone.utc) if published else None,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    _cache_invalidate('articles')
    return {'id': a.id}

@router.get('/admin/articles', dependencies=[Depends(require_admin)], response_model=List[dict])
def list_articles(db: Session = Depends(get_db)):
    items = db.query(Article).order_by(asc(Article.sort_order), asc(Article.id)).all()
    return [_article_dict(a, full=True) for a in items]

@router.put('/admin/articles/{article_id}', dependencies=[Depends(require_admin)], response_model=dict)
def update_article(article_id: int, payload: dict, db: Session = Depends(get_db)):
    a = db.query(Article).filter(Article.id == article_id).first()
    if not a:
        raise HTTPException(status_code=404, detail='not found')
    if 'title' in payload or 'slug' in payload:
        title, slug = _validate_article_payload(payload, creating=False)
        if 'title' in payload:
            a.title = title
        if slug and slug != a.slug:
            if db.query(Article.id).filter(Article.slug == slug).first():
                raise HTTPException(status_code=409, detail='slug already exists')
            a.slug = slug
    for key in ['content', 'excerpt']:
        if key in payload:
            setattr(a, key, _text(payload[key]))
    if payload.get('parent_id') == a.id:
        raise HTTPException(status_code=400, detail='article cannot be its own parent')
    for key in ['featured_image', 'parent_id', 'sort_order']:
        if key in payload:
            setattr(a, key, payload[key])
    if 'is_published' in payload:
        published = bool(payload['is_published'])
        if published and not a.is_published:
            a.published_at = datetime.now(timezone.utc)
        a.is_published = published
    db.commit()
    _cache_invalidate('articles')
    return {'status': 'ok'}

@router.delete('/admin/articles/{article_id}', dependencies=[Depends(require_admin)], response_model=dict)
def delete_article(article_id: int, db: Session = Depends(get_db)):
    a = db.query(Article).filter(Article.id == article_id).first()
    if not a:
        raise HTTPException(status_code=404, detail='not found')
    db.delete(a)
    db.commit()
    _cache_invalidate('articles')
    return {'status': 'deleted'}
