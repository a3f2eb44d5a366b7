"""One-off script for debugging document generation end to end."""

from config.settings import load_config
from modules.services.session import Session
from modules.ui.callbacks import build_callbacks
from modules.utils.logging import setup_logging


def main() -> None:
    # 1. Real configuration, real stores under data/
    config = load_config()
    setup_logging(config)
    session = Session(config).init()
    print("Бэкенды:", session.client.available_backends() or "нет")

    try:
        callbacks = build_callbacks(session)

        # 2. Programme lookup; Informatics 11 comes from the built-in table
        titles, status = callbacks["on_load_curriculum"]("Информатика", "", "11")
        print("КТП:", status)
        unit = titles[0] if titles else ""
        objectives = callbacks["on_select_unit"]("Информатика", "", "11", unit)

        # 3. Summative assessment for the first unit
        content, status = callbacks["on_generate_assessment"](
            "SOR", "11", "Информатика", "1", "ЕМЦ", False, unit, objectives[:2]
        )
        print("Статус:", status)
        if content:
            print(content[:1000])

        # 4. Dashboard after the run
        dashboard, header, _ = callbacks["on_refresh"]()
        print(header)
        print(dashboard)
    finally:
        session.dispose()


if __name__ == "__main__":
    main()
