import hashlib
from typing import List, Optional, Sequence

from setup_logging_optimized import get_logger

logger = get_logger(__name__)

# Professional stock photos used when generation is skipped or fails
FALLBACK_IMAGES = [
    'https://images.unsplash.com/photo-1661956602926-db6b25f75947?q=80&w=870&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1579567761406-4684ee0c75b6?q=80&w=387&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1496065187959-7f07b8353c55?q=80&w=870&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1454165804606-c3d57bc86b40?q=80&w=870&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1552664730-d307ca884978?q=80&w=870&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1606857521015-7f9fcf423740?q=80&w=870&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1573496359142-b8d87734a5a2?q=80&w=388&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1522152302542-71a8e5172aa1?q=80&w=829&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1523240795612-9a054b0db644?q=80&w=870&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1517048676732-d65bc937f952?q=80&w=870&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1541746972996-4e0b0f43e02a?q=80&w=1470&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1613963931023-5dc59437c8a6?q=80&w=1469&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1618761714954-0b8cd0026356?q=80&w=1470&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1581291518633-83b4ebd1d83e?q=80&w=1470&auto=format&fit=crop',
    'https://images.unsplash.com/photo-1542744173-8e7e53415bb0?q=80&w=1470&auto=format&fit=crop',
]

PICSUM_URL = "https://picsum.photos/seed/{seed}/{width}/{height}"


class FallbackImageService:
    """Deterministic placeholder images keyed by prompt text.

    The seed text is hashed, so the same prompt always maps to the same
    placeholder regardless of process or hash randomization.
    """

    SCHEMES = ('pool', 'picsum')

    def __init__(
        self,
        scheme: Optional[str] = None,
        pool: Optional[Sequence[str]] = None,
        width: int = 800,
        height: int = 600
    ):
        if scheme is None:
            from agents.generation.config import get_image_config
            scheme = get_image_config().fallback_scheme
        if scheme not in self.SCHEMES:
            raise ValueError(f"Unknown fallback scheme '{scheme}', expected one of {self.SCHEMES}")

        self.scheme = scheme
        self.pool: List[str] = list(pool if pool is not None else FALLBACK_IMAGES)
        if self.scheme == 'pool' and not self.pool:
            raise ValueError("Fallback image pool is empty")
        self.width = width
        self.height = height

    @staticmethod
    def seed_number(seed: str) -> int:
        digest = hashlib.sha256((seed or '').encode('utf-8', 'surrogatepass')).hexdigest()
        return int(digest[:12], 16)

    def fallback(self, seed: str) -> str:
        """Placeholder URL for ``seed``; identical seeds give identical URLs."""
        number = self.seed_number(seed)
        if self.scheme == 'picsum':
            url = PICSUM_URL.format(seed=number % 1000, width=self.width, height=self.height)
        else:
            url = self.pool[number % len(self.pool)]
        logger.debug(f"Fallback image for '{(seed or '')[:60]}': {url}")
        return url

    def is_fallback(self, url: Optional[str]) -> bool:
        """Whether ``url`` is one of this service's placeholders."""
        if not url:
            return False
        if url in self.pool:
            return True
        return url.startswith("https://picsum.photos/seed/")
