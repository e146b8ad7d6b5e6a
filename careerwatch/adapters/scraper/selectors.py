"""
Selectors used to find job listings on career pages.
Listing selectors are tried in order; the first one that yields jobs wins.
"""

LISTING_SELECTORS = [
    ".job-listing",
    ".careers-listing",
    ".job-post",
    ".job-card",
    "[data-job-id]",
    "article.job",
    ".features-job",
]

# Identity attributes, checked in order on the listing element
ID_ATTRIBUTES = ["data-job-id", "id"]

# Generic listing cards
TITLE_SELECTOR = ".job-title, h2, h3"
DESCRIPTION_SELECTOR = ".job-description, .description, p"
LOCATION_SELECTOR = ".job-location, .location"
DEPARTMENT_SELECTOR = ".job-department, .department, .category"
LINK_SELECTOR = "a[href]"

# F1soft style cards (.features-job)
F1SOFT_CLASS = "features-job"
F1SOFT_TITLE_LINK = "h3 a"
F1SOFT_DEPARTMENT = ".box-content a.fw-600"
F1SOFT_LOCATION = ".icon-map-pin + span"
F1SOFT_TAGS = [
    ("Type", ".job-tag li:nth-of-type(1) a"),
    ("Level", ".job-tag li:nth-of-type(2) a"),
    ("Category", ".job-tag li:nth-of-type(3) a"),
]
F1SOFT_DEADLINE = "p.days"
