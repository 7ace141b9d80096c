import logging


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    noisy = [
        "selenium",
        "urllib3",
        "websocket",
        "sqlalchemy",
    ]
    for name in noisy:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("selenium.webdriver.common.selenium_manager").setLevel(
        logging.ERROR
    )
