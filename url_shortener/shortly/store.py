import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shortly.models import Link
from shortly.exceptions import ShortCodeConflict
from shortly.schemas import AnalyticsEvent

logger = logging.getLogger(__name__)


class LinkStore:
    """Хранилище коротких ссылок поверх сессии SQLAlchemy.

    Уникальность short_code и custom_alias обеспечивается индексами БД,
    поэтому вставка, проигравшая гонку, отклоняется, а не перезаписывает
    чужую запись.
    """

    def __init__(self, db: Session, write_retries: int = 3):
        self.db = db
        self.write_retries = write_retries

    @contextmanager
    def _reading(self):
        # Откат, чтобы прерванная транзакция не блокировала следующие запросы сессии
        try:
            yield
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def code_exists(self, code: str) -> bool:
        """Проверяет, занят ли код как short_code или как custom_alias"""
        with self._reading():
            return self.db.query(Link.id).filter(
                or_(Link.short_code == code, Link.custom_alias == code)
            ).first() is not None

    def get(self, short_code: str) -> Optional[Link]:
        with self._reading():
            return self.db.query(Link).filter(Link.short_code == short_code).first()

    def find_many(self, short_codes: Iterable[str]) -> List[Link]:
        codes = [code for code in short_codes if code]
        if not codes:
            return []
        with self._reading():
            return self.db.query(Link).filter(Link.short_code.in_(codes)).all()

    def insert(self, link: Link) -> Link:
        """Сохраняет новую ссылку, при конфликте уникальности бросает ShortCodeConflict"""
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Конфликт уникальности для кода %s: %s", link.short_code, e.orig)
            raise ShortCodeConflict()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(link)
        return link

    def append_event(self, link: Link, event: AnalyticsEvent) -> bool:
        """Добавляет событие в журнал и увеличивает счетчик одной условной записью.

        Запись проходит только если click_count не изменился с момента чтения;
        иначе запись перечитывается и попытка повторяется. Возвращает False,
        если все попытки проиграли конкурентным обновлениям.
        """
        payload = event.model_dump(mode="json", by_alias=True)

        for _ in range(self.write_retries):
            expected = link.click_count or 0
            log = list(link.analytics or [])
            log.append(payload)

            try:
                updated = self.db.query(Link).filter(
                    Link.id == link.id,
                    Link.click_count == expected
                ).update(
                    {Link.click_count: expected + 1, Link.analytics: log},
                    synchronize_session=False
                )
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise
            self.db.refresh(link)

            if updated:
                return True

            logger.debug("Конкурентное обновление %s, повтор записи аналитики", link.short_code)

        logger.warning("Переход по %s не учтен: исчерпаны попытки записи", link.short_code)
        return False
