import configparser
import os
from pathlib import Path
from typing import List, Optional


class ConfigLoader:
    def __init__(self, config_path: Optional[Path] = None):
        # 自动定位项目根目录 (core/config/*)
        self.project_root = Path(__file__).resolve().parents[2]
        env_path = os.environ.get("VENDOR_ATLAS_CONFIG")
        self.config_path = Path(config_path or env_path or (self.project_root / "conf" / "settings.ini"))

        self.config = configparser.ConfigParser()
        if not self.config_path.exists():
            raise FileNotFoundError(f"❌ 配置文件丢失: {self.config_path}")

        self.config.read(self.config_path, encoding="utf-8")

    def get(self, section, key):
        """获取配置值并自动展开用户路径 (~)"""
        val = self.config.get(section, key, fallback=None)
        if val and "~" in val:
            return os.path.expanduser(val)
        return val

    def get_path(self, section, key) -> Optional[Path]:
        """Path value; relative paths resolve against the project root."""
        val = (self.get(section, key) or "").strip()
        if not val:
            return None
        p = Path(val)
        return p if p.is_absolute() else (self.project_root / p)

    def get_bool(self, section, key, default: bool = False) -> bool:
        return self.config.getboolean(section, key, fallback=default)

    def get_int_list(self, section, key) -> List[int]:
        raw = self.get(section, key) or ""
        out: List[int] = []
        for tok in raw.replace(";", ",").split(","):
            tok = tok.strip()
            if tok.isdigit():
                out.append(int(tok))
        return out


# 单例模式：直接导出的实例
shop_config = ConfigLoader()
