import asyncio
from unittest.mock import MagicMock, PropertyMock, call, patch

import pytest
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By

from feedgrab.fetch.selenium_scraper import SeleniumEngine, SeleniumPage, SeleniumSession

URL = "https://example.org/feed"


def _driver():
    driver = MagicMock()
    driver.current_window_handle = "tab-2"
    driver.page_source = "<html><pre>x</pre></html>"
    driver.current_url = URL
    driver.title = "Feed"
    return driver


class TestSeleniumPage:
    """Unit tests for the Selenium tab adapter"""

    def test_navigate_sets_timeout_and_waits(self):
        """Test navigation applies the timeout, loads the URL and waits for quiet"""
        driver = _driver()
        with patch("feedgrab.fetch.selenium_scraper.wait_for_network_quiet") as wait:
            asyncio.run(SeleniumPage(driver, "tab-2", "tab-1").navigate(URL, 3000))

        driver.switch_to.window.assert_called_with("tab-2")
        driver.set_page_load_timeout.assert_called_once_with(3.0)
        driver.get.assert_called_once_with(URL)
        wait.assert_called_once()
        assert wait.call_args.args[0] is driver
        assert 0 <= wait.call_args.args[1] <= 3000

    def test_load_timeout_names_url(self):
        """Test a page load timeout surfaces as TimeoutError naming the URL"""
        driver = _driver()
        driver.get.side_effect = TimeoutException("timeout: Timed out receiving message from renderer")
        with pytest.raises(TimeoutError, match=URL) as exc_info:
            asyncio.run(SeleniumPage(driver, "tab-2", "tab-1").navigate(URL, 3000))
        assert isinstance(exc_info.value.__cause__, TimeoutException)

    def test_settle_timeout_names_url(self):
        """Test a network that never goes quiet surfaces as TimeoutError naming the URL"""
        driver = _driver()
        with patch("feedgrab.fetch.selenium_scraper.wait_for_network_quiet",
                   side_effect=TimeoutException("busy")):
            with pytest.raises(TimeoutError, match=URL):
                asyncio.run(SeleniumPage(driver, "tab-2", "tab-1").navigate(URL, 3000))

    def test_read_text_first_match(self):
        """Test the textContent of the first matching element is returned"""
        driver = _driver()
        first, second = MagicMock(), MagicMock()
        first.get_attribute.return_value = "<rss/>"
        driver.find_elements.return_value = [first, second]

        assert asyncio.run(SeleniumPage(driver, "tab-2", "tab-1").read_text("pre")) == "<rss/>"
        driver.find_elements.assert_called_once_with(By.CSS_SELECTOR, "pre")
        first.get_attribute.assert_called_once_with("textContent")
        second.get_attribute.assert_not_called()

    def test_read_text_missing_element(self):
        """Test a page without the element yields None"""
        driver = _driver()
        driver.find_elements.return_value = []
        assert asyncio.run(SeleniumPage(driver, "tab-2", "tab-1").read_text("pre")) is None

    def test_accessors(self):
        """Test document, URL and title come from the driver"""
        page = SeleniumPage(_driver(), "tab-2", "tab-1")
        assert asyncio.run(page.read_document()) == "<html><pre>x</pre></html>"
        assert asyncio.run(page.current_url()) == URL
        assert asyncio.run(page.title()) == "Feed"

    def test_close_returns_to_home_tab(self):
        """Test closing switches to the tab, closes it and goes back home"""
        driver = _driver()
        asyncio.run(SeleniumPage(driver, "tab-2", "tab-1").close())

        driver.close.assert_called_once_with()
        assert driver.switch_to.window.call_args_list == [call("tab-2"), call("tab-1")]
        driver.quit.assert_not_called()


class TestSeleniumSession:
    """Unit tests for the Selenium browser session"""

    def test_new_page_opens_fresh_tab(self):
        """Test each page is a new tab opened from the home tab"""
        driver = _driver()
        page = asyncio.run(SeleniumSession(driver, "tab-1").new_page())

        driver.switch_to.window.assert_called_once_with("tab-1")
        driver.switch_to.new_window.assert_called_once_with("tab")
        assert page._handle == "tab-2"
        assert page._home_handle == "tab-1"

    def test_close_quits_driver(self):
        """Test closing the session quits the browser"""
        driver = _driver()
        asyncio.run(SeleniumSession(driver, "tab-1").close())
        driver.quit.assert_called_once_with()


class TestSeleniumLaunch:
    """Unit tests for starting Chrome through Selenium"""

    def test_launch_returns_session(self, config):
        """Test launch starts Chrome with the configured options"""
        driver = _driver()
        driver.current_window_handle = "tab-1"
        with patch("feedgrab.fetch.selenium_scraper.webdriver.Chrome", return_value=driver) as chrome:
            session = asyncio.run(SeleniumEngine(config).launch())

        options = chrome.call_args.kwargs["options"]
        assert f"--user-agent={config.user_agent}" in options.arguments
        assert session._home_handle == "tab-1"
        driver.quit.assert_not_called()

    def test_launch_failure_quits_driver(self, config):
        """Test the browser is quit when the session cannot be set up"""
        driver = MagicMock()
        type(driver).current_window_handle = PropertyMock(side_effect=WebDriverException("session lost"))
        with patch("feedgrab.fetch.selenium_scraper.webdriver.Chrome", return_value=driver):
            with pytest.raises(WebDriverException):
                asyncio.run(SeleniumEngine(config).launch())
        driver.quit.assert_called_once_with()

    def test_chrome_start_failure_propagates(self, config):
        """Test a missing browser surfaces the driver error"""
        with patch("feedgrab.fetch.selenium_scraper.webdriver.Chrome",
                   side_effect=WebDriverException("chrome not reachable")):
            with pytest.raises(WebDriverException, match="chrome not reachable"):
                asyncio.run(SeleniumEngine(config).launch())
