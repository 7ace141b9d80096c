from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support.ui import WebDriverWait


def wait(driver: WebDriver, timeout: int = 20) -> WebDriverWait:
    return WebDriverWait(driver, timeout)


def wait_until_loaded(driver: WebDriver, timeout: int = 20) -> None:
    wait(driver, timeout).until(
        lambda d: d.execute_script("return document.readyState") == "complete"
    )
