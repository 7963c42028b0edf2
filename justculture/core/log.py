from datetime import datetime
from justculture.core import config

def global_log(msg, level="INFO", component=None):
    if config.LOG_LEVEL == "NONE":
        return
    if config.LOG_LEVEL == "INFO" and level == "DEBUG":
        return
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    prefix = f"[{component}] " if component else ""
    print(f"[{ts}] [{level}] {prefix}{msg}")
