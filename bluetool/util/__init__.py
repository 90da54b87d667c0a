"""Helper for assigning mapping values onto object fields."""