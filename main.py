import sys
import os

# Добавляем корень проекта в путь поиска модулей
current_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.append(current_dir)

from graphite.core.config import load_config, setup_logging
from graphite.core.core import AppCore

if __name__ == "__main__":
    # Необязательный аргумент — путь к JSON с настройками
    config_path = sys.argv[1] if len(sys.argv) > 1 and sys.argv[1].endswith(".json") else None
    # Логирование — до чтения настроек
    setup_logging()
    core = AppCore(sys.argv, load_config(config_path))
    sys.exit(core.run())
