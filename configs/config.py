import os
from typing import Dict, Any

class Config:
	"""Process-wide defaults for the Gitea release plugin."""

	# Token lookup
	GITEA_TOKEN_REF = os.getenv("GITEA_TOKEN_REF", "GITEA_TOKEN")

	# HTTP behaviour (timeout is milliseconds on the options surface)
	GITEA_TIMEOUT_MS = int(os.getenv("GITEA_TIMEOUT_MS", "30000"))
	GITEA_USER_AGENT = os.getenv("GITEA_USER_AGENT", "gitea-release-plugin/1.0")
	API_PREFIX = "/api/v1"

	# Release text defaults
	DEFAULT_RELEASE_TITLE = "v${version}"
	DEFAULT_RELEASE_NOTES = "${changelog}"

	# Zip assets are staged here before upload
	GITEA_TEMP_DIR = os.getenv("GITEA_TEMP_DIR", ".temp")
	ZIP_COMPRESS_LEVEL = 9

	@classmethod
	def get_gitea_defaults(cls) -> Dict[str, Any]:
		"""Hardcoded option defaults applied after explicit options and repo metadata."""
		return {
			"release": True,
			"draft": False,
			"prerelease": False,
			"token_ref": cls.GITEA_TOKEN_REF,
			"timeout": cls.GITEA_TIMEOUT_MS,
			"release_title": cls.DEFAULT_RELEASE_TITLE,
			"release_notes": cls.DEFAULT_RELEASE_NOTES,
			"assets": [],
		}

	@classmethod
	def get_http_config(cls) -> Dict[str, Any]:
		return {
			"api_prefix": cls.API_PREFIX,
			"user_agent": cls.GITEA_USER_AGENT,
		}

	@classmethod
	def get_asset_config(cls) -> Dict[str, Any]:
		return {
			"temp_dir": cls.GITEA_TEMP_DIR,
			"compress_level": cls.ZIP_COMPRESS_LEVEL,
		}
