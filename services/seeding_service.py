# services/seeding_service.py
"""Admin bulk seeding of directory enterprises from a list of URLs."""
import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from sqlmodel import Session, select

from core.config import settings
from core.database import session_scope
from models.models import Enterprise, EnterpriseCategory, SeedJob, SeedJobStatus

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (SeedJobStatus.COMPLETED.value, SeedJobStatus.FAILED.value)


class SeedingError(ValueError):
    pass


def normalize_urls(urls: List[str]) -> List[str]:
    """Strip blanks and drop duplicates, keeping first-seen order."""
    seen = []
    for url in urls:
        url = (url or "").strip()
        if url and url not in seen:
            seen.append(url)
    return seen


def enterprise_from_url(url: str) -> Tuple[str, str]:
    """Return ``(name, website)`` for a URL or raise SeedingError."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise SeedingError("Invalid URL")

    host = parsed.hostname or ""
    if host.startswith("www."):
        host = host[4:]
    label = host.split(".")[0]
    if not label:
        raise SeedingError("Invalid URL")

    name = " ".join(word.capitalize() for word in re.split(r"[-_]+", label) if word)
    return name, f"{parsed.scheme}://{parsed.netloc}"


def start_seed_job(session: Session, urls: List[str], created_by: Optional[int] = None) -> SeedJob:
    unique_urls = normalize_urls(urls)
    if not unique_urls:
        raise SeedingError("No URLs to process")

    job = SeedJob(urls=unique_urls, total_urls=len(unique_urls), created_by=created_by)
    session.add(job)
    session.commit()
    session.refresh(job)
    logger.info(f"🌱 Seeding job {job.id} queued with {job.total_urls} URLs")
    return job


def get_seed_job(session: Session, job_id: str) -> Optional[SeedJob]:
    return session.get(SeedJob, job_id)


def _import_url(session: Session, url: str, category: str) -> None:
    name, website = enterprise_from_url(url)
    duplicate = session.exec(select(Enterprise).where(Enterprise.source_url == url)).first()
    if duplicate:
        raise SeedingError("Already imported")
    session.add(Enterprise(name=name, website=website, source_url=url, category=category, is_verified=False))


def run_seed_job(
    job_id: str,
    category: str = EnterpriseCategory.NETWORK_ORGANIZERS.value,
    batch_size: Optional[int] = None,
) -> None:
    """
    Process a queued job in the background with its own session. Counters are
    committed after every URL so pollers see progress.
    """
    batch_size = batch_size or settings.SEED_BATCH_SIZE

    with session_scope() as session:
        job = session.get(SeedJob, job_id)
        if job is None:
            logger.error(f"❌ Seeding job {job_id} not found")
            return

        job.status = SeedJobStatus.RUNNING.value
        job.started_at = datetime.utcnow()
        session.add(job)
        session.commit()

        urls = list(job.urls or [])
        errors = list(job.errors or [])
        try:
            for start in range(0, len(urls), batch_size):
                for url in urls[start:start + batch_size]:
                    try:
                        _import_url(session, url, category)
                        job.success_count += 1
                    except SeedingError as e:
                        job.failure_count += 1
                        errors.append({"url": url, "error": str(e)})
                    job.processed_urls += 1
                    job.errors = list(errors)
                    session.add(job)
                    session.commit()

                logger.info(
                    f"Processed {job.processed_urls}/{job.total_urls} URLs, "
                    f"Success: {job.success_count}, Failures: {job.failure_count}"
                )
        except Exception:
            session.rollback()
            job = session.get(SeedJob, job_id)
            job.status = SeedJobStatus.FAILED.value
            job.completed_at = datetime.utcnow()
            session.add(job)
            session.commit()
            logger.exception(f"❌ Fatal error in seeding job {job_id}")
            return

        job.status = SeedJobStatus.COMPLETED.value if job.success_count > 0 else SeedJobStatus.FAILED.value
        job.completed_at = datetime.utcnow()
        session.add(job)
        session.commit()
        logger.info(
            f"✅ Seeding job {job.id} {job.status}. Total: {job.total_urls}, "
            f"Success: {job.success_count}, Failures: {job.failure_count}"
        )
