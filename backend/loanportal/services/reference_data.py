"""Pick-list values offered by the report forms and dashboard filters."""

STATES = [
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh", "Goa", "Gujarat",
    "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka", "Kerala", "Madhya Pradesh",
    "Maharashtra", "Manipur", "Meghalaya", "Mizoram", "Nagaland", "Odisha", "Punjab",
    "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana", "Tripura", "Uttar Pradesh",
    "Uttarakhand", "West Bengal", "Delhi", "Jammu & Kashmir", "Ladakh", "Puducherry", "Chandigarh",
]

BOB_REGIONS = [
    "AHMEDABAD REGION", "BENGALURU REGION", "BARODA REGION", "CHENNAI REGION",
    "HYDERABAD REGION", "KOLKATA REGION", "LUCKNOW REGION", "MUMBAI REGION",
    "NEW DELHI REGION", "PUNE REGION", "RANCHI REGION", "SHIVAMOGGA REGION", "SURAT REGION",
    "CHANDIGARH REGION",
]

OUR_REGIONS = [
    "AHMEDABAD", "BANGALORE", "CHENNAI", "DELHI", "HYDERABAD", "KOLKATA", "MUMBAI",
    "PUNE", "SRIDHAR CORPORATE", "SURAT", "CHANDIGARH",
]

ZONES = [
    "AHMEDABAD ZONE", "BENGALURU ZONE", "BHUBANESWAR ZONE", "CHENNAI ZONE",
    "HYDERABAD ZONE", "KOLKATA ZONE", "LUCKNOW ZONE", "MANGALURU ZONE",
    "MUMBAI ZONE", "NEW DELHI ZONE", "PUNE ZONE",
]

PAYMENT_STATUSES = ["Pending", "Paid", "Overdue"]
INVOICE_STATUSES = ["Pending", "Raised", "Cleared"]
# Suggestions only; payout status is stored as free text
PAYOUT_STATUSES = ["Pending", "Paid", "Processing", "Hold"]

# Form defaults for a new inspection report
DEFAULT_STATE = "Karnataka"
DEFAULT_LAR_REMARKS = "YES"


def reference_lists() -> dict[str, list[str]]:
    return {
        "states": STATES,
        "bob_regions": BOB_REGIONS,
        "our_regions": OUR_REGIONS,
        "zones": ZONES,
        "payment_statuses": PAYMENT_STATUSES,
        "invoice_statuses": INVOICE_STATUSES,
        "payout_statuses": PAYOUT_STATUSES,
    }
