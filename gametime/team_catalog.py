"""
Known teams per league, so a team can be followed by abbreviation alone.

ESPN ids and abbreviations match the site API scoreboards. Logo URLs are
derived from the league's logo path.
"""

import logging
from typing import List, Optional

from gametime.models import Team, sport_for_league

logger = logging.getLogger(__name__)

LOGO_URL_FORMAT = "https://a.espncdn.com/i/teamlogos/{}/500/{}.png"

# Short names accepted in place of ESPN league slugs
LEAGUE_ALIASES = {
    "epl": "eng.1",
    "ech": "eng.2",
    "usl": "usa.usl.1",
}

# ESPN's logo file doesn't always match the abbreviation
LOGO_SLUG_OVERRIDES = {
    ("mlb", "CWS"): "chw",
}

# league -> (ESPN id, abbreviation, name)
TEAMS = {
    "nba": [
        ("1", "ATL", "Atlanta Hawks"),
        ("2", "BOS", "Boston Celtics"),
        ("17", "BKN", "Brooklyn Nets"),
        ("30", "CHA", "Charlotte Hornets"),
        ("4", "CHI", "Chicago Bulls"),
        ("5", "CLE", "Cleveland Cavaliers"),
        ("6", "DAL", "Dallas Mavericks"),
        ("7", "DEN", "Denver Nuggets"),
        ("8", "DET", "Detroit Pistons"),
        ("9", "GS", "Golden State Warriors"),
        ("10", "HOU", "Houston Rockets"),
        ("11", "IND", "Indiana Pacers"),
        ("12", "LAC", "LA Clippers"),
        ("13", "LAL", "Los Angeles Lakers"),
        ("29", "MEM", "Memphis Grizzlies"),
        ("14", "MIA", "Miami Heat"),
        ("15", "MIL", "Milwaukee Bucks"),
        ("16", "MIN", "Minnesota Timberwolves"),
        ("3", "NO", "New Orleans Pelicans"),
        ("18", "NY", "New York Knicks"),
        ("25", "OKC", "Oklahoma City Thunder"),
        ("19", "ORL", "Orlando Magic"),
        ("20", "PHI", "Philadelphia 76ers"),
        ("21", "PHX", "Phoenix Suns"),
        ("22", "POR", "Portland Trail Blazers"),
        ("23", "SAC", "Sacramento Kings"),
        ("24", "SA", "San Antonio Spurs"),
        ("28", "TOR", "Toronto Raptors"),
        ("26", "UTAH", "Utah Jazz"),
        ("27", "WSH", "Washington Wizards"),
    ],
    "nfl": [
        ("22", "ARI", "Arizona Cardinals"),
        ("1", "ATL", "Atlanta Falcons"),
        ("33", "BAL", "Baltimore Ravens"),
        ("2", "BUF", "Buffalo Bills"),
        ("29", "CAR", "Carolina Panthers"),
        ("3", "CHI", "Chicago Bears"),
        ("4", "CIN", "Cincinnati Bengals"),
        ("5", "CLE", "Cleveland Browns"),
        ("6", "DAL", "Dallas Cowboys"),
        ("7", "DEN", "Denver Broncos"),
        ("8", "DET", "Detroit Lions"),
        ("9", "GB", "Green Bay Packers"),
        ("34", "HOU", "Houston Texans"),
        ("11", "IND", "Indianapolis Colts"),
        ("30", "JAX", "Jacksonville Jaguars"),
        ("12", "KC", "Kansas City Chiefs"),
        ("13", "LV", "Las Vegas Raiders"),
        ("24", "LAC", "Los Angeles Chargers"),
        ("14", "LAR", "Los Angeles Rams"),
        ("15", "MIA", "Miami Dolphins"),
        ("16", "MIN", "Minnesota Vikings"),
        ("17", "NE", "New England Patriots"),
        ("18", "NO", "New Orleans Saints"),
        ("19", "NYG", "New York Giants"),
        ("20", "NYJ", "New York Jets"),
        ("21", "PHI", "Philadelphia Eagles"),
        ("23", "PIT", "Pittsburgh Steelers"),
        ("25", "SF", "San Francisco 49ers"),
        ("26", "SEA", "Seattle Seahawks"),
        ("27", "TB", "Tampa Bay Buccaneers"),
        ("10", "TEN", "Tennessee Titans"),
        ("28", "WSH", "Washington Commanders"),
    ],
    "mlb": [
        ("29", "ARI", "Arizona Diamondbacks"),
        ("15", "ATL", "Atlanta Braves"),
        ("1", "BAL", "Baltimore Orioles"),
        ("2", "BOS", "Boston Red Sox"),
        ("16", "CHC", "Chicago Cubs"),
        ("4", "CWS", "Chicago White Sox"),
        ("17", "CIN", "Cincinnati Reds"),
        ("5", "CLE", "Cleveland Guardians"),
        ("27", "COL", "Colorado Rockies"),
        ("6", "DET", "Detroit Tigers"),
        ("18", "HOU", "Houston Astros"),
        ("7", "KC", "Kansas City Royals"),
        ("3", "LAA", "Los Angeles Angels"),
        ("19", "LAD", "Los Angeles Dodgers"),
        ("28", "MIA", "Miami Marlins"),
        ("8", "MIL", "Milwaukee Brewers"),
        ("9", "MIN", "Minnesota Twins"),
        ("21", "NYM", "New York Mets"),
        ("10", "NYY", "New York Yankees"),
        ("11", "OAK", "Oakland Athletics"),
        ("22", "PHI", "Philadelphia Phillies"),
        ("23", "PIT", "Pittsburgh Pirates"),
        ("25", "SD", "San Diego Padres"),
        ("26", "SF", "San Francisco Giants"),
        ("12", "SEA", "Seattle Mariners"),
        ("24", "STL", "St. Louis Cardinals"),
        ("30", "TB", "Tampa Bay Rays"),
        ("13", "TEX", "Texas Rangers"),
        ("14", "TOR", "Toronto Blue Jays"),
        ("20", "WSH", "Washington Nationals"),
    ],
    "nhl": [
        ("25", "ANA", "Anaheim Ducks"),
        ("1", "BOS", "Boston Bruins"),
        ("2", "BUF", "Buffalo Sabres"),
        ("3", "CGY", "Calgary Flames"),
        ("7", "CAR", "Carolina Hurricanes"),
        ("4", "CHI", "Chicago Blackhawks"),
        ("17", "COL", "Colorado Avalanche"),
        ("29", "CBJ", "Columbus Blue Jackets"),
        ("9", "DAL", "Dallas Stars"),
        ("5", "DET", "Detroit Red Wings"),
        ("6", "EDM", "Edmonton Oilers"),
        ("26", "FLA", "Florida Panthers"),
        ("8", "LA", "Los Angeles Kings"),
        ("30", "MIN", "Minnesota Wild"),
        ("10", "MTL", "Montreal Canadiens"),
        ("27", "NSH", "Nashville Predators"),
        ("11", "NJ", "New Jersey Devils"),
        ("12", "NYI", "New York Islanders"),
        ("13", "NYR", "New York Rangers"),
        ("14", "OTT", "Ottawa Senators"),
        ("15", "PHI", "Philadelphia Flyers"),
        ("16", "PIT", "Pittsburgh Penguins"),
        ("18", "SJ", "San Jose Sharks"),
        ("124292", "SEA", "Seattle Kraken"),
        ("19", "STL", "St. Louis Blues"),
        ("20", "TB", "Tampa Bay Lightning"),
        ("21", "TOR", "Toronto Maple Leafs"),
        ("129764", "UTAH", "Utah Hockey Club"),
        ("22", "VAN", "Vancouver Canucks"),
        ("37", "VGK", "Vegas Golden Knights"),
        ("23", "WSH", "Washington Capitals"),
        ("28", "WPG", "Winnipeg Jets"),
    ],
    "eng.1": [
        ("349", "BOU", "AFC Bournemouth"),
        ("359", "ARS", "Arsenal"),
        ("362", "AVL", "Aston Villa"),
        ("337", "BRE", "Brentford"),
        ("331", "BHA", "Brighton & Hove Albion"),
        ("379", "BUR", "Burnley"),
        ("363", "CHE", "Chelsea"),
        ("384", "CRY", "Crystal Palace"),
        ("368", "EVE", "Everton"),
        ("370", "FUL", "Fulham"),
        ("357", "LEE", "Leeds United"),
        ("364", "LIV", "Liverpool"),
        ("382", "MNC", "Manchester City"),
        ("360", "MAN", "Manchester United"),
        ("361", "NEW", "Newcastle United"),
        ("393", "NFO", "Nottingham Forest"),
        ("366", "SUN", "Sunderland"),
        ("367", "TOT", "Tottenham Hotspur"),
        ("371", "WHU", "West Ham United"),
        ("380", "WOL", "Wolverhampton Wanderers"),
    ],
    "eng.2": [
        ("392", "BIR", "Birmingham City"),
        ("365", "BLK", "Blackburn Rovers"),
        ("333", "BRC", "Bristol City"),
        ("372", "CHA", "Charlton Athletic"),
        ("388", "COV", "Coventry City"),
        ("374", "DER", "Derby County"),
        ("306", "HUL", "Hull City"),
        ("373", "IPS", "Ipswich Town"),
        ("375", "LEI", "Leicester City"),
        ("369", "MID", "Middlesbrough"),
        ("391", "MIL", "Millwall"),
        ("381", "NOR", "Norwich City"),
        ("311", "OXF", "Oxford United"),
        ("385", "POR", "Portsmouth"),
        ("394", "PNE", "Preston North End"),
        ("334", "QPR", "Queens Park Rangers"),
        ("398", "SHU", "Sheffield United"),
        ("399", "SHW", "Sheffield Wednesday"),
        ("376", "SOU", "Southampton"),
        ("336", "STK", "Stoke City"),
        ("318", "SWA", "Swansea City"),
        ("395", "WAT", "Watford"),
        ("383", "WBA", "West Bromwich Albion"),
        ("352", "WXM", "Wrexham"),
    ],
    "usa.usl.1": [
        ("19405", "BRM", "Birmingham Legion FC"),
        ("131579", "BFKC", "Brooklyn FC"),
        ("9729", "CHS", "Charleston Battery"),
        ("17830", "COS", "Colorado Springs Switchbacks FC"),
        ("19179", "DET", "Detroit City FC"),
        ("19407", "ELP", "El Paso Locomotive FC"),
        ("18446", "TUL", "FC Tulsa"),
        ("19411", "HFD", "Hartford Athletic"),
        ("17360", "INDY", "Indy Eleven"),
        ("18987", "LVL", "Las Vegas Lights FC"),
        ("21822", "LEX", "Lexington SC"),
        ("19410", "LDN", "Loudoun United FC"),
        ("17832", "LOU", "Louisville City FC"),
        ("18159", "MIA", "Miami FC"),
        ("21370", "MTB", "Monterey Bay FC"),
        ("19408", "NMU", "New Mexico United"),
        ("20687", "OAK", "Oakland Roots SC"),
        ("18455", "OCSC", "Orange County SC"),
        ("17850", "PHX", "Phoenix Rising FC"),
        ("17827", "PIT", "Pittsburgh Riverhounds SC"),
        ("22164", "RHI", "Rhode Island FC"),
        ("17828", "SAC", "Sacramento Republic FC"),
        ("18265", "SAFC", "San Antonio FC"),
        ("131578", "JAX", "Sporting Jacksonville"),
        ("17361", "TBR", "Tampa Bay Rowdies"),
    ],
}


def normalize_league(league: str) -> str:
    league = league.strip().lower()
    return LEAGUE_ALIASES.get(league, league)


def supported_leagues() -> List[str]:
    return list(TEAMS)


def _logo_url(league: str, team_id: str, abbreviation: str) -> str:
    if sport_for_league(league) == "soccer":
        return LOGO_URL_FORMAT.format("soccer", team_id)
    slug = LOGO_SLUG_OVERRIDES.get((league, abbreviation), abbreviation.lower())
    return LOGO_URL_FORMAT.format(league, slug)


def teams_for_league(league: str) -> List[Team]:
    """Every known team in a league, empty for leagues without a catalog."""
    league = normalize_league(league)
    sport = sport_for_league(league)
    entries = TEAMS.get(league)
    if not entries or sport is None:
        return []
    return [
        Team(id=team_id, name=name, abbreviation=abbreviation, sport=sport, league=league,
             logo_url=_logo_url(league, team_id, abbreviation))
        for team_id, abbreviation, name in entries
    ]


def find_team(league: str, key: str) -> Optional[Team]:
    """Look a team up by abbreviation or ESPN id, ignoring case."""
    key = key.strip().upper()
    for team in teams_for_league(league):
        if team.abbreviation.upper() == key or team.id == key:
            return team
    logger.debug(f"No {league} team matches '{key}'")
    return None
