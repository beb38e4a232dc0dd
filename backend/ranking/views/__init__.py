from ranking.views.game_handlers import delete_game as delete_game
from ranking.views.game_handlers import get_game as get_game
from ranking.views.game_handlers import player_games as player_games
from ranking.views.game_handlers import restore_game as restore_game
from ranking.views.player_handlers import create_player as create_player
from ranking.views.player_handlers import delete_player as delete_player
from ranking.views.player_handlers import get_player as get_player
from ranking.views.player_handlers import restore_player as restore_player
from ranking.views.ranking_handlers import cache_status as cache_status
from ranking.views.ranking_handlers import get_config as get_config
from ranking.views.ranking_handlers import get_ranking as get_ranking
from ranking.views.ranking_handlers import invalidate_cache as invalidate_cache
from ranking.views.submission_handlers import approve_submission as approve_submission
from ranking.views.submission_handlers import delete_submission as delete_submission
from ranking.views.submission_handlers import list_pending as list_pending
from ranking.views.submission_handlers import reject_submission as reject_submission
from ranking.views.submission_handlers import restore_submission as restore_submission
from ranking.views.submission_handlers import submit_game as submit_game
