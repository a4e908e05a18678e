from dataclasses import dataclass

from src.profile_archive.application.ports import SnapshotPort
from src.profile_archive.domain.models import SENTINEL, ListingRecord, PortfolioItem, ProfileRecord


@dataclass(frozen=True)
class ProfileSelectors:
    name: str = "h1[aria-label='Public Name']"
    handle: str = "div[aria-label='Username']"
    heading: str = "p[role='heading'][aria-level='3']"
    rating: str = "#Reviews h2.text-display-7"
    rating_suffix: str = "Reviews"
    skills: str = 'ul[aria-label="Skills List"] li a'
    listing_cards: str = "#Services .gig_listings-package.listing-container.grid-view .gig-card-layout"
    listing_title: str = "h4, h3, p"
    listing_link: str = "a"
    portfolio_items: str = ".project-item"
    portfolio_title: str = ".project-title"
    portfolio_image: str = "img"


class ProfileExtractor:
    """Read a rendered profile snapshot into a ProfileRecord.

    Every field resolves through a fixed selector. A missing element yields
    the "N/A" sentinel (scalars) or an empty tuple (lists); extraction never
    raises and never writes to the snapshot.
    """

    def __init__(self, selectors: ProfileSelectors | None = None) -> None:
        self.selectors = selectors or ProfileSelectors()

    def extract(self, snapshot: SnapshotPort) -> ProfileRecord:
        s = self.selectors
        return ProfileRecord(
            name=self._text(snapshot, s.name),
            handle=self._text(snapshot, s.handle),
            heading=self._text(snapshot, s.heading),
            rating_count=self._rating_count(snapshot),
            skills=tuple(self._text(el, None) for el in snapshot.query_all(s.skills)),
            portfolio=tuple(
                PortfolioItem(
                    title=self._text(el, s.portfolio_title),
                    image=self._attr(el, s.portfolio_image, "src"),
                )
                for el in snapshot.query_all(s.portfolio_items)
            ),
            listings=tuple(
                ListingRecord(
                    title=self._text(el, s.listing_title),
                    link=self._attr(el, s.listing_link, "href"),
                )
                for el in snapshot.query_all(s.listing_cards)
            ),
        )

    def _rating_count(self, snapshot: SnapshotPort) -> str:
        text = snapshot.query_text(self.selectors.rating)
        if text is None:
            return SENTINEL
        count = text.split(self.selectors.rating_suffix)[0].strip()
        return count or SENTINEL

    @staticmethod
    def _text(snapshot: SnapshotPort, selector: str | None) -> str:
        value = snapshot.query_text(selector)
        return SENTINEL if value is None else value

    @staticmethod
    def _attr(snapshot: SnapshotPort, selector: str, attr: str) -> str:
        value = snapshot.query_attr(selector, attr)
        return SENTINEL if value is None else value
