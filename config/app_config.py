import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

# Settlement rates (fractions of the gross collected amount)
PLATFORM_FEE_RATE = Decimal(os.getenv("PLATFORM_FEE_RATE", "0.08"))
GATEWAY_FEE_RATE = Decimal(os.getenv("GATEWAY_FEE_RATE", "0.036"))
CREATOR_ROYALTY_RATE = Decimal(os.getenv("CREATOR_ROYALTY_RATE", "0.03"))

CURRENCY = os.getenv("CURRENCY", "JPY")

# Reward tier price bounds (currency units)
REWARD_MIN_AMOUNT = int(os.getenv("REWARD_MIN_AMOUNT", 500))
REWARD_MAX_AMOUNT = int(os.getenv("REWARD_MAX_AMOUNT", 2_900_000))

# Campaign target bounds (currency units)
TARGET_MIN_AMOUNT = int(os.getenv("TARGET_MIN_AMOUNT", 10_000))
TARGET_MAX_AMOUNT = int(os.getenv("TARGET_MAX_AMOUNT", 10_000_000))

# Submission checklist thresholds (characters)
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 500
STORY_WARNING_LENGTH = 50
STORY_COMPLETE_LENGTH = 100

# Completion worker
COMPLETION_CHECK_INTERVAL_MINUTES = int(os.getenv("COMPLETION_CHECK_INTERVAL_MINUTES", 15))

# Shared secret the payment provider sends with pledge callbacks
PAYMENT_WEBHOOK_SECRET = os.getenv("PAYMENT_WEBHOOK_SECRET", "")
