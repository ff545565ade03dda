"""Prompt builders for the Gemini try-on and video flows."""

from __future__ import annotations


COMBINATION_PROMPT_TEMPLATE = (
    "Replace the clothing on the person in Image 1 with the {garment} shown in Image 2. "
    "Maintain the person’s original body pose, facial expression, hairstyle, and background. "
    "Ensure the {garment} appears naturally fitted on the person, with correct proportions, "
    "realistic textures, and lighting consistent with Image 1. "
    "Do not alter the person’s face, body, or environment as some of the apparel is not "
    "supposed to be replaced like {kept} - only change the apparel to seamlessly match "
    "the {garment} from Image 2."
)

PERSONAL_TRYON_PROMPT_TEMPLATE = (
    "Replace the clothing on the person in Image 1 with the {garment} shown in Image 2. "
    "Maintain the person’s original body pose, facial expression, hairstyle, and background. "
    "Ensure the {garment} appears naturally fitted on the person, with correct proportions, "
    "realistic textures, and lighting consistent with Image 1. "
    "Do not alter the person’s face, body, or environment - only change the apparel to "
    "seamlessly match the {garment} from Image 2."
)

VIDEO_PROMPT = "generate a video of this model while modeling"


def build_combination_prompt(image1_title: str, image2_title: str) -> str:
    """Prompt that dresses the person in image 1 with the garment in image 2.

    image1_title names the apparel already worn that should be kept.
    """
    return COMBINATION_PROMPT_TEMPLATE.format(garment=image2_title, kept=image1_title)


def build_personal_tryon_prompt(clothing_title: str) -> str:
    return PERSONAL_TRYON_PROMPT_TEMPLATE.format(garment=clothing_title)
