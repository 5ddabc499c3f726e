"""
Phrase pools for the interpretation engine.

Placeholders use ``string.Template`` syntax (``${same_category}``). Every
pool is a tuple; the generator picks one phrase per pool deterministically
from the center cell id.
"""

from types import MappingProxyType

from all_types.internal_types import AreaType, PeakTime, RiskLevel

# ===== Summaries =====
# Keyed by (category key | None, risk level, area type | None). The
# (None, None, None) entry is the generic fallback and must stay present.

SUMMARY_TEMPLATES = MappingProxyType(
    {
        (None, None, None): (
            "Overall risk for a ${category_name} here scores ${score} out of 100.",
        ),
        (None, RiskLevel.LOW, None): (
            "Risk looks low for a ${category_name} at this location (${score}/100).",
            "This spot scores ${score}/100, on the safer side for a ${category_name}.",
        ),
        (None, RiskLevel.MEDIUM, None): (
            "Risk is moderate for a ${category_name} here (${score}/100); the details decide.",
            "A middle-of-the-road location for a ${category_name}, scoring ${score}/100.",
        ),
        (None, RiskLevel.HIGH, None): (
            "Risk is high for a ${category_name} here (${score}/100); go in with a concrete plan.",
            "This location scores ${score}/100 for a ${category_name}, which is a demanding setup.",
        ),
        (None, RiskLevel.VERY_HIGH, None): (
            "Risk is very high for a ${category_name} here (${score}/100); look at other sites first.",
            "At ${score}/100 this is one of the hardest setups for a ${category_name}.",
        ),
        (None, RiskLevel.LOW, AreaType.RESIDENTIAL): (
            "A quiet residential pocket with low risk (${score}/100); regulars will carry a ${category_name}.",
        ),
        (None, RiskLevel.HIGH, AreaType.COMMERCIAL_CORE): (
            "A busy commercial core where a ${category_name} faces high risk (${score}/100) from rent and rivals.",
        ),
        (None, RiskLevel.HIGH, AreaType.SPECIAL): (
            "A special-purpose trade area with high risk (${score}/100); demand swings with seasons and events.",
        ),
        ("cafe", RiskLevel.HIGH, None): (
            "Cafes are a crowded bet and this one scores ${score}/100; a signature menu is not optional.",
        ),
        ("cafe", RiskLevel.VERY_HIGH, None): (
            "With ${same_category} cafes nearby and a score of ${score}/100, this market looks saturated.",
        ),
        ("restaurant_chicken", RiskLevel.HIGH, None): (
            "Fried chicken is among the most contested trades and this spot scores ${score}/100.",
        ),
        ("pharmacy", RiskLevel.LOW, None): (
            "A pharmacy here scores ${score}/100; licensing keeps the field narrow.",
        ),
        ("convenience", RiskLevel.MEDIUM, AreaType.RESIDENTIAL): (
            "A residential convenience store scoring ${score}/100; steady but thin margins.",
        ),
    }
)

# Structural one-liners appended to the summary, chosen by metric combination
STRUCTURE_SENTENCES = MappingProxyType(
    {
        "worst": "Competition is fierce, foot traffic is thin and rent is high; the numbers rarely work out.",
        "quiet": "Few competitors but also few passers-by; demand itself may be weak.",
        "mostly_good": "Most indicators look good, but good conditions attract competitors too.",
        "mostly_bad": "Several indicators are unfavourable at once; the risks compound.",
        "split_pie": "Plenty of traffic, but ${same_category} stores split it; without an edge you lose the endurance race.",
        "cost_churn": "High closures and high rent together mean losses can pile up quickly.",
        "cost": "Fixed costs are heavy; a weak month burns through capital fast.",
        "low_traffic": "Walk-in traffic alone will not fill the till here.",
        "average": "An average trade area; results depend on your concept and target customers.",
    }
)

# ===== Per-dimension explanations =====

COMPETITION_PHRASES = MappingProxyType(
    {
        ("high", "high"): (
            "Lots of customers, but ${same_category} shops share them; expect an endurance race.",
            "Traffic is good, but you compete with ${same_category} similar shops; a clear edge is needed.",
        ),
        ("high", "low"): (
            "Competition is dense while few people pass by; honestly, the conditions are poor.",
            "There are ${same_category} similar shops yet little foot traffic; consider other sites.",
        ),
        ("high", None): (
            "${same_category} similar shops operate nearby; an ordinary offer gets lost.",
            "Competition is intense; differentiate on price or service.",
        ),
        ("medium", None): (
            "A healthy level of competition, which suggests proven demand.",
            "There is competition but it is not overheated.",
        ),
        ("low", "high"): (
            "Few competitors for this much traffic; it may be an opening, so check why it is empty.",
            "You could be first in, but verify that the demand is real.",
        ),
        ("low", "low"): (
            "Little competition and little traffic; you would rely on nearby residents.",
            "A quiet neighbourhood; expect to live on regulars.",
        ),
        ("low", None): (
            "Only ${same_category} similar shops nearby; competition is light.",
        ),
    }
)

TRAFFIC_PHRASES = MappingProxyType(
    {
        ("low", None): (
            "Not many people pass by; you may depend on delivery.",
            "Foot traffic is light; check the residential demand around you.",
        ),
        ("medium", None): (
            "Foot traffic is moderate (index ${traffic_index}).",
        ),
        ("high", PeakTime.NIGHT): (
            "Evening traffic is strong; after-work demand is there to take.",
        ),
        ("high", PeakTime.MORNING): (
            "Morning commuter demand is strong; take-out and quick service fit well.",
        ),
        ("high", None): (
            "Plenty of people pass by; now give them a reason to come in.",
            "Foot traffic is ample, so visibility and signage matter.",
        ),
    }
)

COST_PHRASES = MappingProxyType(
    {
        ("high", AreaType.COMMERCIAL_CORE): (
            "Rent runs around ${avg_rent} per unit area here; a high-turnover format is essential.",
        ),
        ("high", None): (
            "Rent is high at about ${avg_rent}; work out monthly fixed costs carefully.",
            "Cost pressure may be heavy; compare rent against expected sales.",
        ),
        ("medium", None): (
            "Rent is around ${avg_rent}, an average level.",
        ),
        ("low", None): (
            "Rent is cheap, so the initial burden is light.",
            "Costs look fine, but find out why rent is this low.",
        ),
    }
)

SURVIVAL_PHRASES = MappingProxyType(
    {
        "high": (
            "Closure rate of ${closure_rate}% is high; running a shop here is hard.",
            "Many shops close in this area; prepare thoroughly.",
        ),
        "medium": (
            "Closure rate of ${closure_rate}% is about average.",
            "No special danger, but no room for complacency either.",
        ),
        "low": (
            "Closure rate of ${closure_rate}% is low; the area is stable.",
            "Shops tend to last here; there may be a loyal customer base.",
        ),
    }
)

PEAK_PHRASES = MappingProxyType(
    {
        PeakTime.MORNING: (
            "The morning commute is the peak; fast service pays off.",
            "A morning-led area, so plan for the afternoon lull.",
        ),
        PeakTime.DAY: (
            "Daytime is the busiest; target the lunch crowd.",
            "Lunch to afternoon is the peak; staff accordingly.",
        ),
        PeakTime.NIGHT: (
            "Evening into night is the peak; late opening is an advantage.",
            "An evening area; do not expect much daytime revenue.",
        ),
    }
)

WEEKEND_HEAVY_SENTENCE = "Weekends dominate, so be ready to carry weekday fixed costs."
WEEKDAY_HEAVY_SENTENCE = "Weekday demand is strong; closing on weekends is an option."

AREA_PHRASES = MappingProxyType(
    {
        AreaType.RESIDENTIAL: (
            "A residential area where steady regulars keep shops going.",
            "A neighbourhood trade area; tailor the offer to residents.",
        ),
        AreaType.MIXED: (
            "A mixed work-and-live area; the customer base changes by time of day.",
            "Varied demand here calls for a strategy per time slot.",
        ),
        AreaType.COMMERCIAL_CORE: (
            "A commercial core with strong inflow, and matching competition and rent.",
            "A lively hot spot where trends change quickly.",
        ),
        AreaType.SPECIAL: (
            "A special trade area that may hinge on seasons or events.",
            "Weekday and weekend demand can differ sharply here.",
        ),
    }
)

ANCHOR_NONE_PHRASES = (
    "No major anchor facility nearby; you must draw customers yourself.",
    "Without a station or large store nearby, visits will be purpose-driven.",
)
ANCHOR_FAR_SENTENCE = "Anchor facilities exist but are far enough that their pull is limited."

AREA_LABELS = MappingProxyType(
    {
        AreaType.RESIDENTIAL: "residential area",
        AreaType.MIXED: "mixed area",
        AreaType.COMMERCIAL_CORE: "commercial core",
        AreaType.SPECIAL: "special trade area",
    }
)

# ===== Category-specific overrides =====
# category key -> dimension -> level -> phrases

CATEGORY_PHRASES = MappingProxyType(
    {
        "cafe": {
            "competition": {
                "high": (
                    "There are ${same_category} cafes nearby; without a signature menu you will be buried.",
                    "Cafes are saturated here; social marketing or a distinctive interior is a must.",
                ),
                "low": ("Few cafes around; you could gain a first-mover edge.",),
            },
            "traffic": {
                "high": ("Heavy foot traffic suits take-out coffee.",),
                "low": ("Light traffic means a neighbourhood cafe built on regulars.",),
            },
        },
        "bakery": {
            "competition": {
                "high": ("${same_category} bakeries nearby; a signature bread sets you apart.",),
                "low": ("Few bakeries here; room to become the neighbourhood bakery.",),
            },
        },
        "restaurant_korean": {
            "competition": {
                "high": ("${same_category} Korean restaurants nearby; compete on price or taste.",),
            },
            "traffic": {
                "high": ("Office lunch demand is within reach.",),
                "low": ("You may have to lean on delivery.",),
            },
        },
        "restaurant_chicken": {
            "competition": {
                "high": ("${same_category} chicken shops nearby, one of the most contested trades.",),
            },
            "traffic": {
                "low": ("Plan for a delivery-first operation.",),
            },
        },
        "bar": {
            "competition": {
                "high": ("${same_category} bars nearby; the concept has to stand out.",),
            },
            "traffic": {
                "high": ("Strong evening traffic works in your favour.",),
            },
        },
        "convenience": {
            "competition": {
                "high": ("${same_category} convenience stores nearby; check the franchise territory rules.",),
            },
        },
        "pharmacy": {
            "competition": {
                "high": ("${same_category} pharmacies nearby; without a clinic close by it is tough.",),
                "low": ("Few pharmacies here; a good opening if you hold the licence.",),
            },
        },
    }
)

# ===== Risk / opportunity statements =====

RISK_STATEMENTS = MappingProxyType(
    {
        "competition": "Dense competition: ${same_category} similar shops within 500 m.",
        "traffic": "Weak foot traffic (index ${traffic_index}).",
        "cost": "High rent burden (about ${avg_rent}).",
        "survival": "High closure rate (${closure_rate}%).",
        "anchor": "No strong anchor facility nearby.",
    }
)

OPPORTUNITY_STATEMENTS = MappingProxyType(
    {
        "competition": "Light competition: ${same_category} similar shops within 500 m.",
        "traffic": "Strong foot traffic (index ${traffic_index}).",
        "cost": "Affordable rent (about ${avg_rent}).",
        "survival": "Low closure rate (${closure_rate}%).",
        "anchor": "Close to an anchor facility (${anchor_name}, ${anchor_distance} m).",
    }
)
