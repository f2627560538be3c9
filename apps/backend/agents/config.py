"""
Configuration settings for the agents package.
"""

import os

from dotenv import load_dotenv

load_dotenv()

#==============================================================================
# IMAGE GENERATION MODELS
#==============================================================================

# Text-capable provider: good at typography, diagrams and labels
IDEOGRAM_MODEL_ID = "fal-ai/ideogram/v2"
# Photo-realistic provider: naturalistic scenes without embedded text
RECRAFT_MODEL_ID = "fal-ai/recraft-20b"

FAL_BASE_URL = "https://fal.run"
# Header carrying the real endpoint when requests go through a proxy
FAL_PROXY_TARGET_HEADER = "x-fal-target-url"

#==============================================================================
# PROVIDER PARAMETERS
#==============================================================================

IDEOGRAM_STYLES = ('auto', 'general', 'realistic', 'design', 'render_3D', 'anime')
IDEOGRAM_DEFAULT_STYLE = 'realistic'

RECRAFT_STYLES = (
    'any',
    'realistic_image',
    'digital_illustration',
    'vector_illustration',
    'realistic_image/natural_light',
    'realistic_image/studio_portrait',
    'digital_illustration/hand_drawn',
)
RECRAFT_DEFAULT_STYLE = 'realistic_image'

IDEOGRAM_NEGATIVE_PROMPT = "blurry, distorted, low quality, text, watermark, logo"
RECRAFT_NEGATIVE_PROMPT = "blurry, distorted, low quality, disfigured, text, watermark"

#==============================================================================
# IMAGE GENERATION TOGGLES
#==============================================================================

# When off every slide resolves straight to a placeholder image
IMAGE_GENERATION_ENABLED = os.getenv('IMAGE_GENERATION_ENABLED', 'true').lower() == 'true'

# "pool" picks from a fixed list of stock photos, "picsum" builds a seeded picsum URL
FALLBACK_IMAGE_SCHEME = os.getenv('FALLBACK_IMAGE_SCHEME', 'pool')
