# Fixed-window counter.
# KEYS[1] - counter key, ARGV[1] - allowed hits, ARGV[2] - window in ms.
# Returns 0 when the hit is allowed, otherwise the remaining window in ms.
lua_script = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = ARGV[2]

local current = tonumber(redis.call("GET", key) or "0")
if current > 0 then
    if current + 1 > limit then
        return redis.call("PTTL", key)
    end
    redis.call("INCR", key)
    return 0
end

redis.call("SET", key, 1, "PX", window)
return 0
"""
