#!/usr/bin/env python3
"""Models for the Gitea release workflow.

`ReleaseConfig` is the resolved, per-invocation configuration snapshot.
`ReleasePayload` and `ReleaseResponse` mirror the forge's wire format.
"""
from typing import Any, Callable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

AssetType = Literal["file", "zip"]

# A template string, an `npm:<provider>` reference, or a callable(context) -> str
ReleaseText = Union[str, Callable[..., Any]]


class AssetSpec(BaseModel):
	"""One configured asset: a glob pattern and how to ship what it matches."""

	path: str = Field(..., min_length=1, description="Glob pattern, relative to the working directory")
	name: Optional[str] = Field(None, description="Override for the uploaded filename")
	type: AssetType = "file"
	label: Optional[str] = None

	model_config = ConfigDict(extra="ignore", frozen=True)


class ReleaseConfig(BaseModel):
	"""Fully-populated configuration for one release run."""

	host: str
	owner: str
	repository: str
	release: bool = True
	release_title: Optional[ReleaseText] = Field(None, alias="releaseTitle")
	release_notes: Optional[ReleaseText] = Field(None, alias="releaseNotes")
	prerelease: bool = False
	draft: bool = False
	token_ref: str = Field("GITEA_TOKEN", alias="tokenRef")
	timeout: int = Field(30000, gt=0, description="Request timeout in milliseconds")
	# Raw entries (path string or mapping); each one is validated inside the asset pipeline
	assets: List[Any] = Field(default_factory=list)

	model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True, arbitrary_types_allowed=True)

	@property
	def timeout_s(self) -> float:
		return self.timeout / 1000.0

	@property
	def repo_path(self) -> str:
		return f"/repos/{self.owner}/{self.repository}"


class ReleasePayload(BaseModel):
	"""Body sent when creating or updating a release."""

	tag_name: str
	name: str
	body: str
	draft: bool = False
	prerelease: bool = False


class ReleaseResponse(BaseModel):
	"""Release object returned by the forge. Only `id` and `html_url` drive the workflow."""

	id: int
	html_url: str = ""
	tag_name: Optional[str] = None
	name: Optional[str] = None
	body: Optional[str] = None
	draft: bool = False
	prerelease: bool = False
	url: Optional[str] = None
	created_at: Optional[str] = None
	published_at: Optional[str] = None

	model_config = {"extra": "ignore"}
