"""Failure notifiers for health-check."""

from ._slack import AppDetail, SlackNotifier, readable_image_id

__all__ = ["AppDetail", "SlackNotifier", "readable_image_id"]
