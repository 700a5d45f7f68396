"""Console UI for nihongo application."""

import time

import requests

from cli.api_client import NihongoAPIClient

CATEGORIES = ['Hiragana', 'Katakana', 'Kanji', 'Custom']
DIFFICULTIES = {'e': 'Easy', 'm': 'Medium', 'h': 'Hard'}


def error_detail(e: Exception) -> str:
    """Pull the server's error message out of an HTTP error."""
    if isinstance(e, requests.HTTPError) and e.response is not None:
        try:
            return e.response.json().get('detail', str(e))
        except ValueError:
            pass
    return str(e)


class ConsoleUI:
    """Console user interface for nihongo application."""

    def __init__(self, client: NihongoAPIClient):
        self.client = client

    def print_menu(self, due_count: int):
        print('\n' + '=' * 40)
        print('What would you like to practice?')
        print('=' * 40)
        for i, category in enumerate(CATEGORIES, 1):
            print(f'  {i}. {category}')
        print(f'  r. Review due words ({due_count})')
        print('  i. Insights')
        print('  a. Achievements')
        print('  h. History')
        print('  q. Quit')

    def print_result(self, result: dict):
        print('\n' + '=' * 40)
        print('SESSION COMPLETE!')
        print('=' * 40)
        print(f"Final score: {result['score']}")
        print(f"Accuracy: {result['accuracy']}% ({result['total_answered']} answered)")
        print(f"Best streak: {result['max_streak']}")
        if result['struggled_words']:
            words = ', '.join(f"{w['japanese']} ({w['romaji']})" for w in result['struggled_words'])
            print(f'Practice these: {words}')
        print('=' * 40)

    def print_unlocked(self, unlocked: list[str]):
        for achievement_id in unlocked:
            print(f'*** Achievement unlocked: {achievement_id} ***')

    def print_insights(self, insights: dict):
        summary = insights['summary']
        mastery = insights['mastery']
        weaknesses = insights['weaknesses']
        print('\n' + '=' * 50)
        print('INSIGHTS')
        print('=' * 50)
        print(f"Sessions: {summary['sessions']} | Avg accuracy: {summary['average_accuracy']}% | "
              f"Best score: {summary['best_score']} | Best streak: {summary['best_streak']}")
        print(f"Words tracked: {mastery['total']} | Learning: {mastery['learning']} | "
              f"Mastered: {mastery['mastered']} | Due now: {mastery['due']}")
        if weaknesses['struggled_words']:
            print('\nMost missed words:')
            for entry in weaknesses['struggled_words']:
                word = entry['word']
                print(f"  {word['japanese']} ({word['romaji']}) - {entry['count']}x")
        if weaknesses['weak_characters']:
            chars = ', '.join(f"{c['character']}:{c['count']}" for c in weaknesses['weak_characters'][:10])
            print(f'\nWeak characters: {chars}')
        if weaknesses['weak_groups']:
            print('Weak rows:')
            for entry in weaknesses['weak_groups'][:5]:
                print(f"  {entry['label']} - {entry['count']}x")
        print('=' * 50)

    def print_achievements(self, data: dict):
        print('\n' + '=' * 50)
        print(f"ACHIEVEMENTS ({data['unlocked_count']}/{len(data['achievements'])})")
        print('=' * 50)
        for a in data['achievements']:
            mark = a['icon'] if a['unlocked'] else '  '
            print(f"{mark} {a['title']:<16} {a['description']}")
        print('=' * 50)

    def print_history(self, data: dict):
        if not data['history']:
            print('No sessions yet.')
            return
        print('\nRecent sessions:')
        for r in data['history']:
            print(f"  {r['type']:<9} {r['difficulty']:<7} score {r['score']:<6} "
                  f"{r['accuracy']:>3}% of {r['total_answered']}  streak {r['max_streak']}")

    def choose_rows(self, category: str) -> list[str] | None:
        rows = self.client.get_rows(category)['rows']
        if not rows:
            return []
        for i, row in enumerate(rows, 1):
            print(f"  {i:>2}. {' '.join(row['characters'])}  {row['label']}")
        choice = input('Rows (e.g. 1,2,3 or "all"): ').strip().lower()
        if choice == 'all':
            return [row['id'] for row in rows]
        selected = []
        for part in choice.split(','):
            part = part.strip()
            if part.isdigit() and 1 <= int(part) <= len(rows):
                selected.append(rows[int(part) - 1]['id'])
        return selected or None

    def configure_and_start(self, category: str) -> dict | None:
        rows = self.choose_rows(category)
        if rows is None:
            print('Select at least one row.')
            return None
        topic = None
        if category == 'Custom':
            topic = input('Topic: ').strip()
        difficulty = DIFFICULTIES.get(input('Difficulty [e/m/h] (m): ').strip().lower(), 'Medium')
        endless = input('Endless drill? [y/N]: ').strip().lower() == 'y'
        print('Generating words...')
        try:
            return self.client.start_session(category, rows, difficulty, endless, topic)
        except Exception as e:
            print(f'Could not start session: {error_detail(e)}')
            return None

    def play(self, snapshot: dict):
        """Run one session until it finishes or the learner leaves."""
        commands = '"exit" to leave'
        if snapshot['is_endless']:
            commands += ', "finish" to end and save'
        print(f'Type the romaji. Commands: {commands}')

        while snapshot['state'] in ('active', 'review_active'):
            item = snapshot['current_item']
            print(f"\n[{snapshot['position'] + 1}/{snapshot['queue_length']}] "
                  f"Score: {snapshot['score']} | Streak: {snapshot['streak']} (x{snapshot['multiplier']:.1f})")
            print(f"\n>>> {item['japanese']}")
            answer = ''
            while not answer:
                answer = input('==> ').strip()

            if answer.lower() == 'exit':
                self.client.exit_session()
                print('Session abandoned.')
                return
            if answer.lower() == 'finish' and snapshot['is_endless']:
                data = self.client.finish_session()
                if data['result']:
                    self.print_result(data['result'])
                self.print_unlocked(data['unlocked'])
                return

            try:
                result = self.client.submit_answer(answer)
            except Exception as e:
                print(f'Error submitting answer: {error_detail(e)}')
                snapshot = self.client.get_session()
                continue

            if result['correct']:
                print(f"Correct! +{result['points']} points")
            else:
                print(f"Incorrect. The answer was: {result['expected'].upper()}")
            self.print_unlocked(result['unlocked'])

            # Server advances after the feedback delay
            time.sleep(result['feedback_delay_ms'] / 1000 + 0.1)
            snapshot = self.client.get_session()
            if snapshot['compliment']:
                print(snapshot['compliment'])

        if snapshot['state'] == 'finished' and snapshot['last_result']:
            self.print_result(snapshot['last_result'])
            self.print_unlocked(self.client.acknowledge_achievements()['new'])

    def run(self):
        """Run the main application loop."""
        try:
            health = self.client.health_check()
            print(f"Connected to nihongo server ({health['service']})")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        name = self.client.get_profile()['display_name']
        while not name:
            name = input('What should we call you? ').strip()
            if name:
                self.client.set_display_name(name)
        print(f'\nYokoso, {name}!')

        while True:
            due_count = self.client.get_due()['count']
            self.print_menu(due_count)
            choice = input('> ').strip().lower()

            if choice == 'q':
                print('Sayonara!')
                return
            elif choice == 'i':
                self.print_insights(self.client.get_insights())
            elif choice == 'a':
                self.print_achievements(self.client.get_achievements())
            elif choice == 'h':
                self.print_history(self.client.get_history())
            elif choice == 'r':
                try:
                    snapshot = self.client.start_review()
                except Exception as e:
                    print(f'Could not start review: {error_detail(e)}')
                    continue
                self.play(snapshot)
            elif choice.isdigit() and 1 <= int(choice) <= len(CATEGORIES):
                snapshot = self.configure_and_start(CATEGORIES[int(choice) - 1])
                if snapshot:
                    self.play(snapshot)
            else:
                print('Unknown choice.')
