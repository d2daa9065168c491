"""Holiday calendars and the resolver that turns them into non-working dates."""
