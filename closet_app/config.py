"""Configuration helpers for the closet canvas service."""

from dataclasses import dataclass, field
from pathlib import Path
import os
from typing import Optional, Tuple

DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_OCCASION = "General"
DEFAULT_INVALID_MARKERS: Tuple[str, ...] = ("undefined",)


@dataclass
class ClosetConfig:
    """Configuration values for the canvas composer and its closet store client.

    The canvas constants mirror the behaviour of the mobile client: items are
    kept ``canvas_margin`` pixels from the top/left edge and ``canvas_edge_inset``
    pixels from the right/bottom edge, and a drop point is treated as the centre
    of a drag handle offset by ``drag_handle_offset``.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    user_id: Optional[str] = None
    request_timeout_seconds: float = 30.0
    canvas_margin: float = 10.0
    canvas_edge_inset: float = 70.0
    drag_handle_offset: float = 30.0
    drop_tolerance: float = 50.0
    picker_overlay_fraction: float = 0.5
    default_item_width: float = 200.0
    default_item_height: float = 200.0
    drag_emphasis_scale: float = 1.1
    invalid_reference_markers: Tuple[str, ...] = field(default=DEFAULT_INVALID_MARKERS)
    default_occasion: str = DEFAULT_OCCASION
    session_draft_dir: Optional[str] = None
    session_idle_seconds: float = 3600.0
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "ClosetConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default. Environment variables (upper-cased keys) take precedence over
        file values so deployments can inject the API host and user id.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("CLOSET_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        def get_float(key: str, default: float) -> float:
            raw = get_value(key)
            if raw is None or str(raw).strip() == "":
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ValueError(f"{key} must be numeric, got {raw!r}") from exc

        markers_raw = get_value("invalid_reference_markers")
        markers = (
            tuple(marker.strip() for marker in markers_raw.split(",") if marker.strip())
            if markers_raw
            else DEFAULT_INVALID_MARKERS
        )

        return cls(
            api_base_url=str(get_value("closet_api_base_url", DEFAULT_API_BASE_URL) or DEFAULT_API_BASE_URL),
            user_id=get_value("closet_user_id"),
            request_timeout_seconds=get_float("request_timeout_seconds", 30.0),
            canvas_margin=get_float("canvas_margin", 10.0),
            canvas_edge_inset=get_float("canvas_edge_inset", 70.0),
            drag_handle_offset=get_float("drag_handle_offset", 30.0),
            drop_tolerance=get_float("drop_tolerance", 50.0),
            picker_overlay_fraction=get_float("picker_overlay_fraction", 0.5),
            default_item_width=get_float("default_item_width", 200.0),
            default_item_height=get_float("default_item_height", 200.0),
            drag_emphasis_scale=get_float("drag_emphasis_scale", 1.1),
            invalid_reference_markers=markers,
            default_occasion=str(get_value("default_occasion", DEFAULT_OCCASION) or DEFAULT_OCCASION),
            session_draft_dir=get_value("session_draft_dir"),
            session_idle_seconds=get_float("session_idle_seconds", 3600.0),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` config file."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
