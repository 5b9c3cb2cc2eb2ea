from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LANGUAGES = [
    "assembly", "c", "cpp", "rust", "go", "julia", "java",
    "nodejs", "csharp", "dart", "python_codon", "pascal",
    "python", "php", "r", "ruby", "chap", "zig", "fortran", "nim",
]


class Settings(BaseSettings):
    # ---- paths ----
    project_root: Path = Path.cwd()
    scripts_dir: Path = Path("scripts")
    docs_dir: Path = Path("docs")
    database_url: str = "sqlite:///./reactor.db"

    # ---- benchmark execution ----
    max_concurrent: int = 3
    timeout_s: float = 300
    heartbeat_s: float = 15
    supported_languages: List[str] = list(DEFAULT_LANGUAGES)

    # ---- http ----
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = ["*"]
    comment_rate: int = 5
    comment_window_s: float = 60 * 60
    benchmark_rate: int = 30
    benchmark_window_s: float = 60

    log_level: str = "INFO"

    # env prefix LR_*
    model_config = SettingsConfigDict(env_prefix="LR_", extra="ignore")

    def resolved(self, p: Path) -> Path:
        return p if p.is_absolute() else (self.project_root / p).resolve()


def load_settings() -> Settings:
    # 0) base from env LR_*
    s = Settings()

    # 1) conf/reactor.yaml (or REACTOR_CONF)
    conf_yaml = os.environ.get("REACTOR_CONF", "conf/reactor.yaml")
    try:
        with open(conf_yaml, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        data = {}
    except yaml.YAMLError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    bench = data.get("benchmarks") or {}
    if not isinstance(bench, dict):
        bench = {}
    http = data.get("http") or {}
    if not isinstance(http, dict):
        http = {}
    limits = http.get("rate_limits") or {}
    if not isinstance(limits, dict):
        limits = {}

    comments_lim = limits.get("comments") if isinstance(limits.get("comments"), dict) else {}
    bench_lim = limits.get("benchmarks") if isinstance(limits.get("benchmarks"), dict) else {}

    # 2) merge into Settings with the proper types; env wins over yaml
    explicit = s.model_fields_set
    update: Dict[str, Any] = {}

    def put(field: str, raw: Any, cast):
        if raw is None or field in explicit:
            return
        update[field] = cast(raw)

    put("project_root", data.get("project_root"), lambda v: Path(str(v)))
    put("scripts_dir", data.get("scripts_dir"), lambda v: Path(str(v)))
    put("docs_dir", data.get("docs_dir"), lambda v: Path(str(v)))
    put("database_url", data.get("database_url"), str)
    put("log_level", data.get("log_level"), str)
    put("max_concurrent", bench.get("max_concurrent"), int)
    put("timeout_s", bench.get("timeout_s"), float)
    put("heartbeat_s", bench.get("heartbeat_s"), float)
    put("supported_languages", bench.get("languages"), lambda v: [str(x) for x in v])
    put("host", http.get("host"), str)
    put("port", http.get("port"), int)
    put("cors_origins", http.get("cors_origins"), lambda v: [str(x) for x in v])
    put("comment_rate", comments_lim.get("max"), int)
    put("comment_window_s", comments_lim.get("window_s"), float)
    put("benchmark_rate", bench_lim.get("max"), int)
    put("benchmark_window_s", bench_lim.get("window_s"), float)

    return s.model_copy(update=update)
