# ABOUTME: Canned IGDB and Twitch OAuth response fixtures for testing.
# ABOUTME: Game arrays shaped like the /games endpoint, plus popularity and release-date rows.

TOKEN_RESPONSE = {"access_token": "token-one", "expires_in": 5000000, "token_type": "bearer"}

REFRESHED_TOKEN_RESPONSE = {"access_token": "token-two", "expires_in": 5000000, "token_type": "bearer"}

GAMES_RESPONSE = [
    {
        "id": 1942,
        "name": "The Witcher 3: Wild Hunt",
        "slug": "the-witcher-3-wild-hunt",
        "summary": "RPG and sequel to The Witcher 2.",
        "storyline": "Geralt searches for Ciri.",
        "first_release_date": 1431993600,
        "total_rating_count": 3500,
        "platforms": [{"name": "PC (Microsoft Windows)"}, {"name": "PlayStation 4"}, {"name": "Xbox One"}],
        "genres": [{"name": "Role-playing (RPG)"}, {"name": "Adventure"}],
        "involved_companies": [
            {"company": {"name": "CD Projekt RED"}, "developer": True, "publisher": False},
            {"company": {"name": "CD Projekt"}, "developer": False, "publisher": True},
            {"company": {"name": "Warner Bros."}, "developer": False, "publisher": True},
        ],
        "keywords": [{"name": "open world"}],
        "collection": {"name": "The Witcher"},
        "franchises": [{"name": "The Witcher"}],
        "cover": {"image_id": "co1wyy"},
        "screenshots": [{"image_id": "sc8lm1"}],
        "url": "https://www.igdb.com/games/the-witcher-3-wild-hunt",
    },
    {
        "id": 80,
        "name": "The Witcher",
        "first_release_date": 1193270400,
        "total_rating_count": 900,
        "platforms": [{"name": "PC (Microsoft Windows)"}],
        "involved_companies": [{"company": {"name": "CD Projekt RED"}, "developer": True}],
        "cover": {"image_id": "co1ywz"},
    },
]

UNRELATED_GAMES_RESPONSE = [
    {
        "id": 5,
        "name": "Completely Different",
        "total_rating_count": 100,
    },
]

POPULARITY_RESPONSE = [
    {"id": 901, "game_id": 80, "value": 0.0042, "popularity_type": 1},
    {"id": 902, "game_id": 1942, "value": 0.0031, "popularity_type": 1},
    {"id": 903, "game_id": 80, "value": 0.0012, "popularity_type": 1},
]

RELEASE_DATES_RESPONSE = [
    {"id": 501, "game": 1942, "date": 1800000000},
    {"id": 502, "game": 1942, "date": 1800000000},
    {"id": 503, "game": 80, "date": 1800086400},
]
