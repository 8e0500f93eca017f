# ABOUTME: Canned Open Library API response fixtures for testing.
# ABOUTME: Edition, works, author, search and editions payloads shaped like the live API.

ISBN_RESPONSE = {
    "title": "Dune",
    "authors": [{"key": "/authors/OL79034A"}],
    "publishers": ["Ace Books"],
    "publish_date": "1990",
    "isbn_13": ["9780441172719"],
    "isbn_10": ["0441172717"],
    "covers": [11481354],
    "physical_format": "Mass Market Paperback",
    "works": [{"key": "/works/OL893415W"}],
}

WORKS_RESPONSE = {
    "key": "/works/OL893415W",
    "title": "Dune",
    "description": {
        "type": "/type/text",
        "value": "Set on the desert planet Arrakis, Dune is the story of the boy Paul Atreides, heir to a noble family "
        "tasked with ruling an inhospitable world where the only thing of value is the spice melange.",
    },
    "subjects": ["Science fiction", "Arrakis"],
}

WORKS_RESPONSE_STR_DESCRIPTION = {
    "key": "/works/OL893415W",
    "title": "Dune",
    "description": "A desert planet and a precious spice.",
}

WORKS_RESPONSE_NO_DESCRIPTION = {
    "key": "/works/OL893415W",
    "title": "Dune",
}

AUTHOR_RESPONSE = {
    "key": "/authors/OL79034A",
    "name": "Frank Herbert",
    "birth_date": "8 October 1920",
}

SEARCH_RESPONSE = {
    "numFound": 2,
    "start": 0,
    "docs": [
        {
            "key": "/works/OL893415W",
            "title": "Dune",
            "author_name": ["Frank Herbert"],
            "first_publish_year": 1965,
            "edition_count": 120,
            "isbn": ["9780441172719", "0441172717"],
            "publisher": ["Chilton Books", "Ace Books"],
            "subject": ["Science fiction", "Arrakis", "Science fiction"],
            "cover_i": 11481354,
        },
        {
            "key": "/works/OL893502W",
            "title": "Dune Messiah",
            "author_name": ["Frank Herbert"],
            "first_publish_year": 1969,
            "edition_count": 60,
        },
    ],
}

SEARCH_RESPONSE_EMPTY = {"numFound": 0, "start": 0, "docs": []}

SEARCH_RESPONSE_SHORT_TITLE = {
    "numFound": 1,
    "start": 0,
    "docs": [
        {
            "key": "/works/OL17358927W",
            "title": "Project Hail Mary",
            "author_name": ["Andy Weir"],
            "first_publish_year": 2021,
        },
    ],
}

EDITIONS_RESPONSE = {
    "entries": [
        {
            "key": "/books/OL1M",
            "title": "Dune",
            "isbn_13": ["9780593099322"],
            "publishers": ["Ace"],
            "physical_format": "Electronic resource",
        },
        {
            "key": "/books/OL2M",
            "title": "Dune",
            "isbn_10": ["0441013597"],
            "publishers": ["Ace Trade"],
            "physical_format": "Paperback",
        },
        {
            "key": "/books/OL3M",
            "title": "Dune",
            "isbn_13": ["9780399128967"],
            "isbn_10": ["0399128964"],
            "publishers": ["Putnam"],
            "physical_format": "Hardcover",
        },
        {
            "key": "/books/OL4M",
            "title": "Dune",
            "isbn_13": ["9781427201430"],
            "publishers": ["Macmillan Audio"],
            "physical_format": "Audio CD",
        },
    ],
}

EDITIONS_RESPONSE_NO_ISBN = {
    "entries": [{"key": "/books/OL9M", "title": "Dune", "publishers": ["Nobody"]}],
}
