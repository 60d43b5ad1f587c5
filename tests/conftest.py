import pytest

from gig_scrapers.extraction import FieldStrategy, SiteSelectors

LISTING_URL = "https://dice.test/venue/the-cellar"
LINK_SELECTOR = "a.event-link"

SELECTORS = SiteSelectors(
    link_selector=LINK_SELECTOR,
    fields={
        "title": [FieldStrategy(selector="h1.title")],
        "date_time": [FieldStrategy(selector="div.date")],
        "location": [FieldStrategy(selector="div.venues span"), FieldStrategy(selector="div.venues a")],
        "price": [
            FieldStrategy(selector='meta[property="product:price:amount"]', read="attribute", name="content"),
            FieldStrategy(selector="div.price"),
        ],
        "image": [FieldStrategy(selector="img.hero", read="property", name="src")],
        "excerpt": [FieldStrategy(selector="div.about", normalize=False)],
        "buy_link": [FieldStrategy(selector="button.buy", read="closest_link")],
    },
)


class FakeElement:
    def __init__(self, text=None, attributes=None, properties=None, link=None):
        self.text = text
        self.attributes = attributes or {}
        self.properties = properties or {}
        self.link = link


def link_element(href):
    return FakeElement(properties={"href": href})


def detail_page(
    title="Shame + Support",
    date_time="Jan 5, Friday, 7:30 PM",
    venue=None,
    venue_link_text=None,
    meta_price=None,
    price=None,
    image=None,
    about=None,
    buy_link=None,
):
    """Builds a {selector: [elements]} map for one detail page; None leaves the element out."""
    page = {}
    if title is not None:
        page["h1.title"] = [FakeElement(text=title)]
    if date_time is not None:
        page["div.date"] = [FakeElement(text=date_time)]
    if venue is not None:
        page["div.venues span"] = [FakeElement(text=venue)]
    if venue_link_text is not None:
        page["div.venues a"] = [FakeElement(text=venue_link_text)]
    if meta_price is not None:
        page['meta[property="product:price:amount"]'] = [FakeElement(attributes={"content": meta_price})]
    if price is not None:
        page["div.price"] = [FakeElement(text=price)]
    if image is not None:
        page["img.hero"] = [FakeElement(properties={"src": image})]
    if about is not None:
        page["div.about"] = [FakeElement(text=about)]
    if buy_link is not None:
        page["button.buy"] = [FakeElement(link=buy_link)]
    return page


class FakeDriver:
    """
    In-memory PageDriver. ``pages`` maps url -> {selector: [FakeElement]}.
    ``listing_batches`` are revealed one per scroll for the link selector.
    ``fail_navigation`` maps url -> number of failing attempts (negative: always).
    """

    def __init__(self, pages=None, listing_batches=None, link_selector=LINK_SELECTOR, fail_navigation=None):
        self.pages = pages or {}
        self.listing_batches = listing_batches or []
        self.link_selector = link_selector
        self.fail_navigation = dict(fail_navigation or {})
        self.current_url = None
        self.navigations = []
        self.scrolls = 0
        self.query_all_calls = 0
        self.query_all_error_on_call = None

    async def navigate(self, url, wait_until="domcontentloaded"):
        self.navigations.append(url)
        remaining = self.fail_navigation.get(url, 0)
        if remaining:
            if remaining > 0:
                self.fail_navigation[url] = remaining - 1
            raise RuntimeError(f"net::ERR_TIMED_OUT at {url}")
        self.current_url = url

    async def query_all(self, selector):
        self.query_all_calls += 1
        if self.query_all_error_on_call == self.query_all_calls:
            raise RuntimeError("Execution context was destroyed")
        if selector == self.link_selector and self.listing_batches:
            visible = self.listing_batches[:self.scrolls + 1]
            return [element for batch in visible for element in batch]
        return list(self.pages.get(self.current_url, {}).get(selector, []))

    async def query_one(self, selector):
        elements = self.pages.get(self.current_url, {}).get(selector, [])
        return elements[0] if elements else None

    async def text_content(self, handle):
        return handle.text

    async def get_attribute(self, handle, name):
        return handle.attributes.get(name)

    async def get_property(self, handle, name):
        return handle.properties.get(name)

    async def closest_link(self, handle):
        return handle.link

    async def evaluate(self, script):
        self.scrolls += 1

    async def wait_for_selector(self, selector):
        if not await self.query_all(selector):
            raise TimeoutError(f"Timeout waiting for selector '{selector}'")


class FakeSession:
    def __init__(self, driver=None, start_error=None):
        self.driver = driver or FakeDriver()
        self.start_error = start_error
        self.started = 0
        self.closed = 0

    async def start(self):
        self.started += 1
        if self.start_error:
            raise self.start_error
        return self.driver

    async def close(self):
        self.closed += 1


@pytest.fixture
def selectors():
    return SELECTORS
