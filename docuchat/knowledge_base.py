import asyncio
import logging
from typing import List, Sequence

from .extraction import extract
from .formats import UploadedFile

logger = logging.getLogger(__name__)

SEPARATOR = "\n\n---\n\n"


def assemble(texts: Sequence[str]) -> str:
    """Join extracted texts in file-selection order."""
    return SEPARATOR.join(texts)


async def extract_all(files: Sequence[UploadedFile]) -> List[str]:
    # gather keeps input order and fails on the first rejected extraction
    return list(await asyncio.gather(*(extract(f) for f in files)))


async def build_knowledge_base(files: Sequence[UploadedFile]) -> str:
    texts = await extract_all(files)
    knowledge_base = assemble(texts)
    logger.info("Assembled knowledge base from %d file(s), %d characters", len(files), len(knowledge_base))
    return knowledge_base
