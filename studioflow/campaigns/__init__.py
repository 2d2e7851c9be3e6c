"""Batch generation runs for campaigns."""

from .runner import CampaignRunner, GenerationResult

__all__ = ["CampaignRunner", "GenerationResult"]
