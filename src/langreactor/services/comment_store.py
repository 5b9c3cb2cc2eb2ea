from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, Field, create_engine, Session, select, func, col
from datetime import datetime, timezone
from typing import List, Optional

MAX_NAME = 50
MAX_TEXT = 1000


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    text: str
    date: str
    ip_address: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def public(self) -> dict:
        return {"id": self.id, "name": self.name, "text": self.text, "date": self.date}


class CommentStore:
    def __init__(self, url="sqlite:///./reactor.db"):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, connect_args=connect_args)
        SQLModel.metadata.create_all(self.engine)
        # Session factory with expire_on_commit=False so returned rows stay readable
        self.SessionLocal = sessionmaker(bind=self.engine, class_=Session, expire_on_commit=False)

    def add(self, name: str, text: str, ip_address: Optional[str] = None) -> Comment:
        now = datetime.now(timezone.utc)
        comment = Comment(
            name=name.strip()[:MAX_NAME],
            text=text.strip()[:MAX_TEXT],
            date=now.isoformat(),
            ip_address=ip_address,
            created_at=now,
        )
        with self.SessionLocal() as s:
            s.add(comment)
            s.commit()
            s.refresh(comment)
            return comment

    def list(self, limit: int = 100) -> List[Comment]:
        with self.SessionLocal() as s:
            stmt = select(Comment).order_by(col(Comment.created_at).desc(), col(Comment.id).desc()).limit(limit)
            return list(s.exec(stmt).all())

    def count(self) -> int:
        with self.SessionLocal() as s:
            return s.exec(select(func.count()).select_from(Comment)).one()

    def delete(self, comment_id: int) -> bool:
        with self.SessionLocal() as s:
            comment = s.get(Comment, comment_id)
            if comment is None:
                return False
            s.delete(comment)
            s.commit()
            return True
