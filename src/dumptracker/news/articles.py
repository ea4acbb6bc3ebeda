"""Editorial articles. Figures are frozen as of publication."""

from __future__ import annotations

from pydantic import BaseModel


class ArticleStats(BaseModel):
    dump_count: int
    avg_per_day: float
    rank: int | None = None
    distinct_locations: int | None = None
    single_day_record: int | None = None


class Article(BaseModel):
    id: str
    title: str
    author: str
    date: str
    paragraphs: list[str]
    image_caption: str | None = None


GIO_100_STATS = ArticleStats(dump_count=100, avg_per_day=2.73)


def _gio_100_paragraphs(stats: ArticleStats) -> list[str]:
    second = (
        f"To get to 100, Gio averaged {stats.avg_per_day:.2f} dumps per day, putting him among the "
        "most consistent contributors on the platform. With 100 dumps logged in 2026 so far, he has "
        "established himself as a force to be reckoned with on the yearly leaderboard."
    )
    if stats.rank is not None:
        second += f" As of this writing, he holds #{stats.rank} on the 2026 leaderboard."

    paragraphs = [
        "Giovanni Caracciolo reached a major milestone on Thursday, February 12th, 2026: his 100th "
        "dump of the year. The achievement caps an impressive run of consistency since joining "
        "Dump Tracker 2026.",
        second,
    ]
    if stats.distinct_locations:
        plural = "s" if stats.distinct_locations != 1 else ""
        paragraphs.append(
            f"Caracciolo has logged dumps at {stats.distinct_locations} distinct location{plural}, "
            "proving that dedication knows no address."
        )
    if stats.single_day_record:
        plural = "s" if stats.single_day_record != 1 else ""
        paragraphs.append(
            f"His single-day record stands at {stats.single_day_record} dump{plural}, "
            "showing he can turn it on when it matters."
        )
    paragraphs.append("Congratulations to Giovanni on 100 dumps. Here's to the next hundred. 🚽")
    return paragraphs


ARTICLES: list[Article] = [
    Article(
        id="gio-100-dumps",
        title="🎉 Giovanni Caracciolo Hits 100 Dumps",
        author="Dump Tracker News",
        date="February 12, 2026",
        paragraphs=_gio_100_paragraphs(GIO_100_STATS),
        image_caption="Giovanni Caracciolo celebrates 100 dumps on February 12, 2026.",
    ),
]


def get_article(article_id: str) -> Article | None:
    return next((a for a in ARTICLES if a.id == article_id), None)
