from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, func, Text
from app.models.base import Base


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    # multilingual {"en","pt","ru"}
    title = Column(JSON, nullable=False)
    content = Column(JSON, nullable=False)
    excerpt = Column(JSON, nullable=True)
    slug = Column(String(200), nullable=False, unique=True, index=True)
    featured_image = Column(Text, nullable=True)
    parent_id = Column(Integer, ForeignKey("articles.id", ondelete="SET NULL"), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
