from __future__ import annotations


class EmbedError(Exception):
	"""Base class for failures a rendering adapter turns into visible state.

	``user_message`` is the only text ever shown to a viewer.
	"""

	user_message = "There was an error loading this activity. Please try again later."


class ActivityNotFound(EmbedError):
	"""The slug did not resolve, or the activity is not public."""

	def __init__(self, slug: str) -> None:
		super().__init__(f"activity {slug!r} not found or not public")
		self.slug = slug
		self.user_message = f'Activity "{slug}" not found or not public'


class ResolutionFailed(EmbedError):
	"""The upstream collaborator failed while resolving an activity."""

	def __init__(self, slug: str, reason: str = "") -> None:
		super().__init__(f"failed to resolve activity {slug!r}: {reason}" if reason else f"failed to resolve activity {slug!r}")
		self.slug = slug


class InvalidDefinition(EmbedError, ValueError):
	"""A quiz payload breaks its invariants (no questions, correct index out of range)."""


class ContainerMissing(EmbedError, LookupError):
	"""The client-side target element does not exist."""

	def __init__(self, container: object) -> None:
		super().__init__(f"container not found: {container!r}")
		self.container = container
