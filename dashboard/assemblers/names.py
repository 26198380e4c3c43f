"""Event names shared by several views, old and new spellings together."""

SESSION_EVENTS = ("$ae_session", "Session_Started")
ACTIVITY_SESSION_EVENTS = ("$ae_session", "Session_Started", "Marketing_Session_Started", "App_Session_Started")
SEARCH_EVENTS = ("Search Performed", "Search", "Search_Performed")
SIGNUP_EVENTS = ("SignUp", "Signup_Completed", "Account Created")
FIRST_OPEN_EVENTS = ("$ae_first_open",)

PAYWALL_VIEWED_EVENTS = ("Paywall Viewed", "Paywall_Viewed", "Subscription View")
PLAN_SELECTED_EVENTS = ("Plan Selected", "Plan_Selected")
PURCHASE_INITIATED_EVENTS = ("Purchase Initiated", "Purchase_Initiated")
PURCHASE_COMPLETED_EVENTS = ("Purchase Completed", "Purchase_Completed")
PURCHASE_FAILED_EVENTS = ("Purchase Failed", "Purchase_Failed")
PURCHASE_CANCELLED_EVENTS = ("Purchase Cancelled", "Purchase_Cancelled")
PAYWALL_DISMISSED_EVENTS = ("Paywall Dismissed", "Paywall_Dismissed")
